from typing import Dict, Iterator, List

from relgraph.document_store.base import DocumentSource


class FakeDocumentSource(DocumentSource):
    """Fake document storage backed by a dictionary of identifier to text."""

    def __init__(self, documents: Dict[str, str] | None = None) -> None:
        self.documents = dict(documents or {})

    def list_documents(self) -> List[str]:
        return list(self.documents.keys())

    def read_text(self, doc_id: str) -> str:
        if doc_id not in self.documents:
            raise KeyError(f"Document {doc_id} not found")
        return self.documents[doc_id]

    def exists(self, doc_id: str) -> bool:
        return doc_id in self.documents

    def iter_documents(self) -> Iterator[tuple[str, str]]:
        yield from self.documents.items()
