"""
Custom exceptions for the data explorer.
"""


class DataExplorerError(Exception):
    """Base exception for the data explorer."""
    pass


class FormatError(DataExplorerError):
    """Raised when an uploaded file cannot be turned into a dataset.

    Covers unsupported extensions, malformed CSV/JSON and datasets whose
    header set is empty or cannot be determined.  The message is meant to
    be shown to the user verbatim.
    """
    pass


class ReadError(DataExplorerError):
    """Raised when the underlying byte source could not be read."""
    pass


class SessionStateError(DataExplorerError):
    """Raised when a session operation is invoked in the wrong state."""
    pass
