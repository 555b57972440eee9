from pinsync.util.di.base import Provider, get_provider
from pinsync.util.di.scope import Scope

__all__ = ["Provider", "Scope", "get_provider"]
