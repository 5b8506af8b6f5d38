"""Coalescing of rapid document edits into one reindex per quiet period."""

import time
from typing import Callable, Dict

Clock = Callable[[], float]


class ChangeCoalescer:
    """Keeps the latest pending edit per document until it has been quiet long enough.

    Each document has its own window, so an edit to one document never
    delays or drops the pending edit of another.
    """

    def __init__(self, delay: float = 0.5, clock: Clock = time.monotonic) -> None:
        """Initialize the coalescer.

        Args:
            delay: Seconds without further edits before a document is due
            clock: Monotonic time source, injectable for tests
        """
        self.delay = delay
        self.clock = clock
        self._pending: Dict[str, tuple[str | None, float]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._pending

    def submit(self, doc_id: str, text: str | None) -> None:
        """Record an edit, restarting the document's quiet window."""
        self._pending[doc_id] = (text, self.clock())

    def discard(self, doc_id: str) -> None:
        self._pending.pop(doc_id, None)

    def move(self, old_id: str, new_id: str) -> None:
        """Carry a pending edit over to a renamed document."""
        if old_id in self._pending:
            self._pending[new_id] = self._pending.pop(old_id)

    def due(self) -> list[tuple[str, str | None]]:
        """Pop every edit whose quiet window has elapsed, oldest first."""
        now = self.clock()
        ready = sorted(
            (edited_at, doc_id)
            for doc_id, (_, edited_at) in self._pending.items()
            if now - edited_at >= self.delay
        )
        return [(doc_id, self._pending.pop(doc_id)[0]) for _, doc_id in ready]

    def drain(self) -> list[tuple[str, str | None]]:
        """Pop every pending edit regardless of its window."""
        pending = [(doc_id, text) for doc_id, (text, _) in self._pending.items()]
        self._pending.clear()
        return pending

    def clear(self) -> None:
        self._pending.clear()
