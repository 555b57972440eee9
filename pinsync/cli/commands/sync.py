"""Sync command - trigger a sync on the server."""

import cyclopts
import httpx

from pinsync.cli.commands.common import get_server_url, server_errors, with_retry
from pinsync.cli.console import get_console

app = cyclopts.App(name="sync", help="Trigger a sync of one data type")


@app.default
def sync(data_type: str, /, force: bool = False) -> None:
    """Sync a data type from the upstream feature service.

    Args:
        data_type: luminaire, outage-area or outage-point
        force: Sync again even if a recent result is cached
    """
    console = get_console()
    server_url = get_server_url()

    with server_errors(server_url):
        with console.status(f"Syncing {data_type}..."):
            response = with_retry(
                lambda: httpx.post(
                    f"{server_url}/api/sync",
                    json={"dataType": data_type, "force": force},
                    timeout=120.0,
                ),
                exceptions=(httpx.ConnectError,),
            )
        response.raise_for_status()
        data = response.json()

    console.success(f"Synced {data_type}")
    console.print(f"  [dim]Snapshot:[/dim] {data['url']}")
