"""Pins command - page through the pins view."""

import asyncio
from collections import Counter

import cyclopts
import httpx

from pinsync.cli.commands.common import get_server_url, server_errors
from pinsync.cli.console import get_console
from pinsync.client import ChunkCache, PinsLoader

app = cyclopts.App(name="pins", help="Load the pins view page by page")


@app.default
def pins(
    data_type: str | None = None,
    limit: int = 1000,
    fresh: bool = False,
    show: int = 10,
) -> None:
    """Load every page of the current snapshot and summarize it.

    Args:
        data_type: Data type to load (server default if omitted)
        limit: Records per page
        fresh: Force a sync before loading
        show: Number of records to list
    """
    console = get_console()
    server_url = get_server_url()

    with server_errors(server_url):
        loader = asyncio.run(_load(server_url, data_type, limit, fresh))

    records = loader.records
    console.success(f"Loaded {len(records):,} of {loader.total:,} records")
    console.print(f"  [dim]Snapshot:[/dim] {loader.url}")
    if loader.restarts:
        console.warning(f"Snapshot changed while paging; restarted {loader.restarts} times")
    if loader.is_fallback:
        console.warning("Upstream unavailable: this snapshot holds synthetic data")

    statuses = Counter(str(r.get("status", "unknown")) for r in records)
    if statuses:
        console.print("  [dim]Status:[/dim] " + ", ".join(f"{s} {n}" for s, n in statuses.most_common()))

    if show > 0 and records:
        console.table(
            [
                {
                    "id": r.get("id"),
                    "name": r.get("name", ""),
                    "status": r.get("status", ""),
                    "coordinates": _coordinates(r),
                }
                for r in records[:show]
            ],
            {"id": "ID", "name": "Name", "status": "Status", "coordinates": "Lon, Lat"},
        )


async def _load(server_url: str, data_type: str | None, limit: int, fresh: bool) -> PinsLoader:
    async with httpx.AsyncClient(base_url=server_url, timeout=120.0) as client:
        loader = PinsLoader(client, cache=ChunkCache(), limit=limit, data_type=data_type)
        await loader.load_all(fresh=fresh)
    return loader


def _coordinates(record: dict) -> str:
    coordinates = (record.get("geometry") or {}).get("coordinates", [])
    return ", ".join(f"{c:.4f}" for c in coordinates)
