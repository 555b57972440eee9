"""Helpers shared by the HTTP client commands."""

import os
import sys
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

import httpx

from pinsync.cli.console import get_console
from pinsync.client import VersionChurnError


def get_server_url() -> str:
    """Get server URL from environment."""
    return os.environ.get("PINSYNC_SERVER", "http://localhost:8000")


T = TypeVar("T")


def with_retry(
    fn: Callable[[], T],
    retries: int = 3,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Retry a function on transient errors with linear backoff.

    Raises:
        The last exception if all retries fail.
    """
    last_error: Exception | None = None
    for attempt in range(retries + 1):
        try:
            return fn()
        except exceptions as e:
            last_error = e
            if attempt < retries:
                time.sleep(0.2 * (attempt + 1))  # Backoff: 0.2, 0.4, 0.6s
    raise last_error  # type: ignore[misc]


@contextmanager
def server_errors(server_url: str) -> Iterator[None]:
    """Turn connection, HTTP and snapshot churn errors into a console message and exit code 1."""
    console = get_console()
    try:
        yield
    except httpx.ConnectError:
        console.error(
            f"Could not connect to server at {server_url}",
            hint="Is the server running? Start it with: pinsync serve",
        )
        sys.exit(1)
    except httpx.HTTPStatusError as e:
        console.error(f"Server error: {e.response.status_code} - {_error_message(e.response)}")
        sys.exit(1)
    except httpx.ReadError:
        console.error("Connection lost while reading response")
        sys.exit(1)
    except VersionChurnError as e:
        console.error(str(e), hint="Snapshots are being replaced faster than they can be paged; retry later")
        sys.exit(1)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error", response.text)
    except ValueError:
        return response.text
