"""
Error kinds raised by persistence states.
"""

from __future__ import annotations


class PersistenceError(RuntimeError):
    """
    Base class for illegal persistence operations on a resource.
    """


class RepositoryNotBoundError(PersistenceError):
    """
    Raised when a resource needs storage but has no repository attached.
    """


class ImmutableError(PersistenceError):
    pass


class ImmutableModificationError(ImmutableError):
    """
    Raised on ``set`` or ``delete`` against an immutable resource.
    """


class ImmutableLazyLoadError(ImmutableError):
    """
    Raised when reading an unloaded subject would require a storage fetch.
    """


class ImmutableDeletedModificationError(ImmutableError):
    """
    Raised on ``set`` against a resource scheduled for deletion.
    """


class UnimplementedOperationError(NotImplementedError):
    pass
