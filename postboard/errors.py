class StoreError(Exception):
    """Base class for failures reported by the entity store."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFound(StoreError):
    """The id does not resolve to a row."""


class ValidationError(StoreError):
    """A required field is missing or empty."""


class ForeignKeyViolation(StoreError):
    """A referenced id does not exist."""


class UniquenessViolation(StoreError):
    """A unique column already holds the proposed value."""


class UnknownStorageError(StoreError):
    """Any other storage-layer failure (connectivity, driver errors)."""
