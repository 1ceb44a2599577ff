"""CLI commands for running the brandguide API server."""

from __future__ import annotations

import typer

api_app = typer.Typer(
    name="api",
    help="API server commands",
    no_args_is_help=True,
)


@api_app.command()
def start(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to run the server on"),
    reload: bool = typer.Option(
        False, "--reload", help="Restart the server when source files change"
    ),
) -> None:
    """
    Start the brandguide API server.

    A single worker process is used so that concurrent requests for the same
    thumbnail share one Drive fetch.

    Examples:
        brandguide api start
        brandguide api start --port 3000
        brandguide api start --reload
    """
    import uvicorn

    uvicorn.run(
        "brandguide.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )
