import json
from pathlib import Path
from typing import Dict, Iterable, List

from loguru import logger

from relgraph.domain.relationship import Relationship
from relgraph.index.base import RelationshipStore
from relgraph.ingestion.identifiers import DEFAULT_EXTENSION, normalize_identifier
from relgraph.ingestion.relationship_parser import parse_relationships


class RelationshipIndex(RelationshipStore):
    """In-memory index of relationships keyed by declaring document.

    Every mutation runs to completion before returning, and the aggregate
    queries are computed from the entries on each call, so readers always
    see a settled state.
    """

    def __init__(
        self,
        filepath: str | Path | None = None,
        *,
        extension: str = DEFAULT_EXTENSION,
        legacy_syntax: bool = False,
    ) -> None:
        """Initialize RelationshipIndex.

        Args:
            filepath: Path to a JSON snapshot. If provided and exists, will auto-load.
                     If provided and doesn't exist, will save to this path when save() is called.
                     If not provided, the index lives in memory only.
            extension: Document extension stripped from identifiers
            legacy_syntax: Also parse the single-delimiter declaration form
        """
        self._filepath = str(filepath) if filepath else None
        self._extension = extension
        self._legacy_syntax = legacy_syntax
        self._relationships: Dict[str, List[Relationship]] = {}

        if self._filepath and Path(self._filepath).exists():
            with open(self._filepath, "r") as f:
                data = json.load(f)
            self._relationships = {
                source_id: [Relationship(**rel) for rel in rels]
                for source_id, rels in data["relationships"].items()
            }
            logger.info(
                f"Loaded {len(self._relationships)} indexed documents from {self._filepath}"
            )

    @classmethod
    def from_data(
        cls, relationships: Dict[str, List[Relationship]] | None = None, **kwargs
    ) -> "RelationshipIndex":
        """Create an index from already parsed relationships (useful for testing)."""
        instance = cls(filepath=None, **kwargs)
        instance._relationships = {
            source_id: list(rels) for source_id, rels in (relationships or {}).items()
        }
        return instance

    def _key(self, name: str) -> str:
        return normalize_identifier(name, self._extension)

    def reindex(self, source_id: str, text: str) -> None:
        """Re-parse a document and replace its relationships wholesale."""
        key = self._key(source_id)
        self._relationships[key] = parse_relationships(
            text, key, legacy_syntax=self._legacy_syntax, extension=self._extension
        )
        logger.debug(f"Indexed {len(self._relationships[key])} relationships from {key}")

    def remove(self, source_id: str) -> None:
        """Remove the relationships declared in a document.

        Relationships from other documents that target it are kept; they
        become edges to a ghost node.
        """
        key = self._key(source_id)
        if self._relationships.pop(key, None) is not None:
            logger.debug(f"Removed {key} from index")

    def rename(self, old_id: str, new_id: str) -> None:
        """Handle a document rename.

        The renamed document's own relationships get the new source and a
        recomputed ID, and every relationship in any document that targets
        the old name is retargeted to the new one.
        """
        old_key, new_key = self._key(old_id), self._key(new_id)
        if old_key == new_key:
            return

        owned = self._relationships.pop(old_key, None)
        if owned is not None:
            self._relationships[new_key] = [rel.with_source(new_key) for rel in owned]
        else:
            logger.debug(f"Renamed document {old_key} had no indexed relationships")

        retargeted = 0
        for key, rels in self._relationships.items():
            if any(rel.target_file == old_key for rel in rels):
                updated = []
                for rel in rels:
                    if rel.target_file == old_key:
                        updated.append(rel.with_target(new_key))
                        retargeted += 1
                    else:
                        updated.append(rel)
                self._relationships[key] = updated

        logger.debug(f"Renamed {old_key} -> {new_key}, retargeted {retargeted} references")

    def full_scan(self, documents: Iterable[tuple[str, str]]) -> None:
        """Clear the index and reindex every (identifier, text) pair."""
        self.clear()
        for source_id, text in documents:
            self.reindex(source_id, text)
        logger.info(
            f"Full scan indexed {len(self._relationships)} documents, "
            f"{sum(len(rels) for rels in self._relationships.values())} relationships"
        )

    def all_relationships(self) -> List[Relationship]:
        """Get all relationships across every indexed document."""
        return [rel for rels in self._relationships.values() for rel in rels]

    def relationships_for(self, source_id: str) -> List[Relationship]:
        """Get relationships declared in a single document."""
        return list(self._relationships.get(self._key(source_id), []))

    def all_node_identifiers(self) -> List[str]:
        """Get every identifier used as a source or target, in first-seen order."""
        nodes: Dict[str, None] = {}
        for rel in self.all_relationships():
            nodes[rel.source_file] = None
            nodes[rel.target_file] = None
        return list(nodes)

    def source_ids(self) -> List[str]:
        """Get identifiers of all indexed documents."""
        return list(self._relationships.keys())

    def save(self, filepath: str | None = None) -> None:
        """Save the index to a JSON file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
        """
        save_path = filepath or self._filepath
        if not save_path:
            raise ValueError(
                "No filepath provided and no default filepath set during initialization"
            )

        data = {
            "relationships": {
                source_id: [rel.model_dump() for rel in rels]
                for source_id, rels in self._relationships.items()
            }
        }
        with open(str(save_path), "w") as f:
            json.dump(data, f)

    def clear(self) -> None:
        """Clear all data from the index."""
        self._relationships.clear()
