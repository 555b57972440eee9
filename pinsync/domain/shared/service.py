"""Base class for pinsync domain services."""

from dataclasses import dataclass
from typing import Any, dataclass_transform

import logfire


@dataclass_transform()
class _ServiceMeta(type):
    def __new__(mcs, name: str, bases: tuple, namespace: dict):
        cls = super().__new__(mcs, name, bases, namespace)
        # Only concrete services become dataclasses; Service itself has no fields.
        return dataclass(cls) if bases else cls


class Service(metaclass=_ServiceMeta):
    """Domain service whose dependencies are dataclass fields injected by dishka."""

    def span(self, operation: str, **attributes: Any):
        """Open a logfire span named ``<ServiceClass>.<operation>``."""
        return logfire.span(f"{type(self).__name__}.{operation}", **attributes)
