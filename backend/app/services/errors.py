class RecordStoreError(Exception):
    """Base class for record store failures."""


class ValidationError(RecordStoreError):
    """Required input is missing or malformed."""


class NotFoundError(RecordStoreError):
    """A referenced entity does not exist."""


class StorageError(RecordStoreError):
    """The underlying persistence operation failed."""
