# bookkeeping/core/errors.py
"""Error kinds raised by the record/receipt core.

The HTTP layer maps each kind to a status code (see ``bookkeeping.main``).
"""


class BookkeepingError(Exception):
    """Base class for every error the core raises on purpose."""


class ValidationError(BookkeepingError):
    """Bad input. Raised before any side effect happens."""


class NotFoundError(BookkeepingError):
    """Record absent, soft-deleted, hard-deleted or lost to a concurrent update."""


class ForbiddenError(BookkeepingError):
    """Acting user may not perform the operation (not the creator, or a reserved role)."""


class StorageError(BookkeepingError):
    """Blob store read/write/delete failure."""


class PersistenceError(BookkeepingError):
    """Database failure. The transaction has been rolled back."""


class ConflictError(BookkeepingError):
    """Unique value already taken (e.g. a user email)."""
