from __future__ import annotations

from typing import ClassVar

from dishka import Provider as DishkaProvider


class Provider(DishkaProvider):
    """Base for pinsync DI providers.

    A provider family (e.g. storage) is a base class whose subclasses each
    name the backend they implement in ``__backend__``. Providers without
    subclasses are used as they are.
    """

    __backend__: ClassVar[str | None] = None


def backends(base: type[Provider]) -> dict[str, type[Provider]]:
    return {c.__backend__: c for c in base.__subclasses__() if c.__backend__}


def get_provider(base: type[Provider], backend: str | None = None) -> type[Provider]:
    """Resolve the provider class serving ``backend``.

    Raises:
        ValueError: If ``base`` has implementations but none for ``backend``.
    """
    available = backends(base)
    if not available:
        return base

    try:
        return available[backend]  # type: ignore[index]
    except KeyError:
        known = ", ".join(sorted(available))
        raise ValueError(f"No {base.__name__} for backend {backend!r} (known: {known})") from None
