"""
FastAPI dependency injection.

The service graph is built once in the app lifespan and kept on
``app.state.services``; per-request objects (the operation context) wrap
it with the request id.

Usage in routers::

    from gst_audit.api.deps import OpContext

    @router.get("/schedule")
    def get_schedule(ctx: OpContext):
        ...
"""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Request

from gst_audit.core.settings import GstAuditSettings, get_settings
from gst_audit.ops.context import OperationContext, Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_operation_context(
    request: Request,
    services: Annotated[Services, Depends(get_services)],
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return OperationContext(services=services, request_id=request_id, caller="api")


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[GstAuditSettings, Depends(get_settings)]
ServicesDep = Annotated[Services, Depends(get_services)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
