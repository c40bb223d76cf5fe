"""Exception hierarchy shared by the index, the stores and the settings loader."""


class LevelsSearchError(Exception):
    """Base class for every error raised by levels-search."""


class ConfigurationError(LevelsSearchError):
    """Raised when an index or store cannot be built from the given inputs.

    Covers a missing store, an empty namespace and settings that fail
    validation. Nothing is constructed when this is raised.
    """


class StoreIOError(LevelsSearchError):
    """Raised when the underlying ordered store fails a read or write.

    Backends chain the original exception (``raise StoreIOError(...) from exc``)
    and never retry; retry policy belongs to the caller.
    """


class InvalidDocumentIdError(LevelsSearchError, ValueError):
    """Raised when a document id cannot be coerced to a 64-bit integer."""
