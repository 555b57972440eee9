"""Dishka scopes used by pinsync."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]
    """APP holds process-wide state: blob store, sync cache and coordinator.

    UOW is entered once per HTTP request and once per scheduled run.
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
