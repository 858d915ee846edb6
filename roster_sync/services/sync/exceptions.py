"""
Exception taxonomy for the sync layer.

Per-item errors are caught by the orchestrator and folded into the
SyncResult counters; only SyncConfigurationError and
ConcurrencyConflictError stop a run before any work begins.
"""


class SyncError(Exception):
    """Base class for sync failures."""


class TransientProviderError(SyncError):
    """Remote provider or network failure (counted as an API error)."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class DataValidationError(SyncError):
    """Malformed or out-of-range record (counted as a data error)."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class MatchingAmbiguityError(SyncError):
    """A player could not be resolved to a roster candidate."""


class ConcurrencyConflictError(SyncError):
    """A sync was requested while another one is running."""


class SyncConfigurationError(SyncError, ValueError):
    """Invalid run arguments or options."""
