"""Cache backends for EmberORM."""

from .backends import CacheBackend, InMemoryCache, NoOpCache

__all__ = ["CacheBackend", "NoOpCache", "InMemoryCache"]
