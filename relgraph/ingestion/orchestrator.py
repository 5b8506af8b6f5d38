"""Orchestration of document lifecycle events into index updates."""

import time
from typing import Callable, Iterable

from loguru import logger

from relgraph.document_store.base import DocumentSource
from relgraph.index.base import RelationshipStore
from relgraph.ingestion.debounce import ChangeCoalescer, Clock
from relgraph.ingestion.identifiers import DEFAULT_EXTENSION, normalize_identifier

Listener = Callable[[], None]


class SyncOrchestrator:
    """Applies host document events to the relationship index.

    The host calls ``apply_create``, ``apply_modify``, ``apply_delete`` and
    ``apply_rename`` as it observes changes, and ``full_scan`` once at
    startup or to recover. Modify events are coalesced per document and
    applied by ``flush_due``. Listeners are notified after each change has
    been fully applied.
    """

    def __init__(
        self,
        *,
        index: RelationshipStore,
        document_source: DocumentSource,
        debounce_seconds: float = 0.5,
        clock: Clock = time.monotonic,
        extension: str = DEFAULT_EXTENSION,
    ):
        """Initialize the orchestrator with required services.

        Args:
            index: Relationship store to keep up to date
            document_source: Host document storage
            debounce_seconds: Quiet period before a modified document is reindexed
            clock: Monotonic time source
            extension: Document extension stripped from identifiers
        """
        self.index = index
        self.document_source = document_source
        self.extension = extension
        self.coalescer = ChangeCoalescer(delay=debounce_seconds, clock=clock)
        self._existing_ids: set[str] = set()
        self._listeners: list[Listener] = []

    @property
    def existing_ids(self) -> frozenset[str]:
        """Identifiers of documents known to exist."""
        return frozenset(self._existing_ids)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every applied change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _key(self, doc_id: str) -> str:
        return normalize_identifier(doc_id, self.extension)

    def full_scan(self) -> None:
        """Rebuild the existing-documents set and the whole index from storage."""
        self.coalescer.clear()
        self._existing_ids = {self._key(doc_id) for doc_id in self.document_source.list_documents()}
        logger.info(f"Scanning {len(self._existing_ids)} documents...")
        self.index.full_scan(self.document_source.iter_documents())
        self._notify()

    def apply_create(self, doc_id: str, text: str | None = None) -> None:
        """Register a new document, indexing it right away if its text is known."""
        key = self._key(doc_id)
        self._existing_ids.add(key)
        if text is not None:
            self.index.reindex(key, text)
        logger.debug(f"Created {key}")
        self._notify()

    def apply_modify(self, doc_id: str, text: str | None = None) -> None:
        """Queue a modified document for reindexing.

        Args:
            doc_id: Modified document
            text: New text, or None to read it from storage when the edit is flushed
        """
        key = self._key(doc_id)
        self._existing_ids.add(key)
        self.coalescer.submit(key, text)
        if self.coalescer.delay <= 0:
            self.flush_due()

    def apply_delete(self, doc_id: str) -> None:
        """Drop a deleted document's relationships. References to it become ghosts."""
        key = self._key(doc_id)
        self.coalescer.discard(key)
        self.index.remove(key)
        self._existing_ids.discard(key)
        logger.debug(f"Deleted {key}")
        self._notify()

    def apply_rename(self, old_id: str, new_id: str) -> None:
        """Move a document's relationships and retarget references to it."""
        old_key, new_key = self._key(old_id), self._key(new_id)
        if old_key not in self._existing_ids:
            logger.warning(f"Rename of unknown document {old_key} -> {new_key}")
        self.coalescer.move(old_key, new_key)
        self.index.rename(old_key, new_key)
        self._existing_ids.discard(old_key)
        self._existing_ids.add(new_key)
        logger.debug(f"Renamed {old_key} -> {new_key}")
        self._notify()

    def flush_due(self) -> int:
        """Reindex every document whose quiet period has elapsed.

        Returns:
            Number of documents reindexed
        """
        return self._apply_pending(self.coalescer.due())

    def flush_all(self) -> int:
        """Reindex every pending document immediately."""
        return self._apply_pending(self.coalescer.drain())

    @property
    def pending(self) -> int:
        return len(self.coalescer)

    def _apply_pending(self, pending: Iterable[tuple[str, str | None]]) -> int:
        applied = 0
        for doc_id, text in pending:
            if text is None:
                try:
                    text = self.document_source.read_text(doc_id)
                except KeyError:
                    logger.warning(f"Modified document {doc_id} disappeared before reindexing")
                    continue
            self.index.reindex(doc_id, text)
            applied += 1

        if applied:
            logger.debug(f"Reindexed {applied} modified documents")
            self._notify()
        return applied
