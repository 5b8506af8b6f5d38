from typing import Iterable, List, Protocol

from relgraph.domain.relationship import Relationship


class RelationshipStore(Protocol):
    def reindex(self, source_id: str, text: str) -> None:
        """Re-parse a document and replace its relationships wholesale."""
        ...

    def remove(self, source_id: str) -> None:
        """Remove all relationships declared in a document."""
        ...

    def rename(self, old_id: str, new_id: str) -> None:
        """Move a document's relationships and retarget references to it."""
        ...

    def full_scan(self, documents: Iterable[tuple[str, str]]) -> None:
        """Clear the store and reindex every (identifier, text) pair."""
        ...

    def all_relationships(self) -> List[Relationship]:
        """Get all relationships across every indexed document."""
        ...

    def relationships_for(self, source_id: str) -> List[Relationship]:
        """Get relationships declared in a single document."""
        ...

    def all_node_identifiers(self) -> List[str]:
        """Get every identifier used as a source or target."""
        ...

    def source_ids(self) -> List[str]:
        """Get identifiers of all indexed documents."""
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save a snapshot of the store to disk."""
        ...

    def clear(self) -> None:
        """Clear all data from the store."""
        ...
