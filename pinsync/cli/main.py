"""pinsync command line.

`serve` runs the API in-process. Every other command is an HTTP client of a
running server, located through PINSYNC_SERVER.
"""

from importlib.metadata import version

import cyclopts

from pinsync.cli.commands import cleanup, pins, serve, sync

app = cyclopts.App(
    name="pinsync",
    help="Versioned snapshot sync and paginated pins API",
    version=lambda: version("pinsync"),
)

for command in (serve, pins, sync, cleanup):
    app.command(command.app)
