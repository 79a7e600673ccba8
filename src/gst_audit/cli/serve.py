"""
CLI: ``gst-audit serve`` — start the API server (and its timers).
"""

from __future__ import annotations

import typer

from gst_audit.cli.utils import console

app = typer.Typer(no_args_is_help=True)


@app.command("start")
def start(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the GST audit API server.

    Run a single worker: each worker starts its own timers.  Several
    workers would still send only once, but would poll more often.
    """
    import uvicorn

    from gst_audit.core.settings import get_settings

    settings = get_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(f"[bold green]Starting gst-audit API[/bold green] on {bind_host}:{bind_port}")
    uvicorn.run(
        "gst_audit.api:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=log_level,
    )
