"""Cleanup command - run retention enforcement on the server."""

import cyclopts
import httpx

from pinsync.cli.commands.common import get_server_url, server_errors, with_retry
from pinsync.cli.console import get_console

app = cyclopts.App(name="cleanup", help="Check storage usage and prune old snapshots")


@app.default
def cleanup() -> None:
    """Prune old snapshots if storage usage is above the threshold."""
    console = get_console()
    server_url = get_server_url()

    with server_errors(server_url):
        response = with_retry(
            lambda: httpx.get(f"{server_url}/api/cron/cleanup", timeout=120.0),
            exceptions=(httpx.ReadError, httpx.ConnectError),
        )
        response.raise_for_status()
        report = response.json()

    console.print("[bold]Storage usage[/bold]")
    console.usage("Before", report["beforeCleanup"])
    console.usage("After", report["afterCleanup"])

    if not report.get("pruned"):
        console.info("Below threshold; nothing pruned")
    elif report.get("errors"):
        console.warning(f"Deleted {report['deleted']} snapshots with {len(report['errors'])} errors")
        for error in report["errors"]:
            console.print(f"  [dim]{error}[/dim]")
    else:
        console.success(f"Deleted {report['deleted']} snapshots")
