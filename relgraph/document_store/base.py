from typing import Iterator, List, Protocol


class DocumentSource(Protocol):
    """Protocol for the host's document storage."""

    def list_documents(self) -> List[str]:
        """Get identifiers of all documents that currently exist."""
        ...

    def read_text(self, doc_id: str) -> str:
        """Get the current text of a document."""
        ...

    def exists(self, doc_id: str) -> bool:
        """Check whether a document with this identifier exists."""
        ...

    def iter_documents(self) -> Iterator[tuple[str, str]]:
        """Yield (identifier, text) for every document."""
        ...
