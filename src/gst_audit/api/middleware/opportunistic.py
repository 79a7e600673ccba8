"""Opportunistic re-arm middleware.

Manifesto:
    On hosts where background timers die with the worker, ordinary API
    traffic is the last trigger left.  After each response the trigger
    service gets a chance to re-arm (and, if the send is overdue, to
    attempt it on a background thread).  Throttling lives in
    :meth:`TriggerService.opportunistic`.

Tags:
    api, middleware, scheduling, redundancy
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from gst_audit.core.logging import get_logger

logger = get_logger(__name__)


class OpportunisticTriggerMiddleware(BaseHTTPMiddleware):
    """Give the trigger service a chance to run after unrelated requests."""

    def __init__(self, app, *, skip_paths: tuple[str, ...] = ()) -> None:
        super().__init__(app)
        self._skip_paths = skip_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        if request.url.path.startswith(self._skip_paths):
            return response
        services = getattr(request.app.state, "services", None)
        if services is not None:
            try:
                services.trigger.opportunistic()
            except Exception as e:
                logger.warning("trigger.opportunistic_failed", error=str(e))
        return response
