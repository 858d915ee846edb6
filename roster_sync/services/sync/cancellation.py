"""Cooperative cancellation for sync runs."""
import threading


class CancellationToken:
    """
    Thread-safe cancellation flag.

    The orchestrator checks it between batches, games, weeks and days;
    an item already in flight always completes.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self):
        return f"CancellationToken(cancelled={self.is_cancelled})"
