"""Cooperative cancellation for pipeline runs.

A ``Cancellation`` wraps an ``asyncio.Event``.  Pipelines call
``raise_if_cancelled()`` between steps (connect, each category, each
table, each batch, archive, cleanup); an in-flight database command is
never interrupted.

Usage:
    cancellation = Cancellation()
    loop.add_signal_handler(signal.SIGINT, cancellation.cancel)
    outcome = await pipeline.run(path, catalog="shop", cancellation=cancellation)
"""

import asyncio

from db_voyager.errors import OperationCancelledError


class Cancellation:
    """Externally controlled cancellation signal."""

    def __init__(self, event: asyncio.Event | None = None) -> None:
        self._event = event or asyncio.Event()

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation; takes effect at the next checkpoint."""
        self._event.set()

    def raise_if_cancelled(self, checkpoint: str = "") -> None:
        """Raise ``OperationCancelledError`` if cancellation was requested."""
        if self._event.is_set():
            where = f" before {checkpoint}" if checkpoint else ""
            raise OperationCancelledError(f"Operation cancelled{where}")


def ensure_cancellation(cancellation: Cancellation | None) -> Cancellation:
    """Return *cancellation*, or a never-triggered one when ``None``."""
    return cancellation if cancellation is not None else Cancellation()
