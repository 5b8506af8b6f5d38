from pathlib import Path
from typing import Dict, Iterator, List

from loguru import logger

from relgraph.document_store.base import DocumentSource
from relgraph.ingestion.identifiers import DEFAULT_EXTENSION, normalize_identifier


class FolderDocumentSource(DocumentSource):
    """Documents stored as files below a folder, identified by basename."""

    def __init__(self, folder: str | Path, extension: str = DEFAULT_EXTENSION) -> None:
        """Initialize FolderDocumentSource.

        Args:
            folder: Root folder searched recursively for documents
            extension: Document extension, including the dot
        """
        self.folder = Path(folder)
        self.extension = extension
        self._paths: Dict[str, Path] | None = None

    def _scan(self) -> Dict[str, Path]:
        """Walk the folder and refresh the cached identifier to path map."""
        if not self.folder.exists():
            logger.warning(f"Document folder does not exist: {self.folder}")
            self._paths = {}
            return self._paths

        files: Dict[str, Path] = {}
        for file in sorted(self.folder.rglob(f"*{self.extension}")):
            if not file.is_file():
                continue
            doc_id = normalize_identifier(file.name, self.extension)
            if doc_id in files:
                logger.warning(
                    f"Duplicate document name {doc_id}: keeping {files[doc_id]}, ignoring {file}"
                )
                continue
            files[doc_id] = file
        self._paths = files
        return files

    def _path(self, doc_id: str) -> Path | None:
        # Rescan only when the identifier is unknown or its file moved away
        key = normalize_identifier(doc_id, self.extension)
        path = self._paths.get(key) if self._paths is not None else None
        if path is None or not path.is_file():
            path = self._scan().get(key)
        return path

    def list_documents(self) -> List[str]:
        """Get identifiers of all documents below the folder."""
        return list(self._scan().keys())

    def read_text(self, doc_id: str) -> str:
        """Get the text of a document."""
        path = self._path(doc_id)
        if path is None:
            raise KeyError(f"Document {normalize_identifier(doc_id, self.extension)} not found")
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def exists(self, doc_id: str) -> bool:
        """Check whether a document with this identifier exists."""
        return self._path(doc_id) is not None

    def iter_documents(self) -> Iterator[tuple[str, str]]:
        """Yield (identifier, text) for every document below the folder."""
        for doc_id, file in self._scan().items():
            logger.debug(f"Reading {file}")
            with open(file, "r", encoding="utf-8") as f:
                yield doc_id, f.read()
