"""Marker base for domain ports (interfaces implemented by infrastructure adapters)."""

from typing import Protocol


class Port(Protocol):
    """Base protocol for all ports."""


__all__ = ["Port"]
