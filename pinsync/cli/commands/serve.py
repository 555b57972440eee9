"""Serve command - run the API server in the foreground."""

import cyclopts
import uvicorn

from pinsync.cli.console import get_console

app = cyclopts.App(name="serve", help="Run the pinsync API server")


@app.default
def serve(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """Run the API server (config from PINSYNC_* env vars or PINSYNC_CONFIG_FILE).

    Args:
        host: Host to bind to.
        port: Port to listen on.
        reload: Restart on code changes (development only).
    """
    get_console().info(f"Serving on http://{host}:{port}")
    uvicorn.run(
        "pinsync.application.api.rest.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )
