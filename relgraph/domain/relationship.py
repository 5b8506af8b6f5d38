"""Relationship domain models."""

from typing import Literal

from pydantic import BaseModel, field_validator

Direction = Literal["outgoing", "incoming", "undirected", "bidirectional"]


def relationship_id(source_file: str, line: int, occurrence: int) -> str:
    """Build the stable ID of a declaration from its position in the source."""
    return f"{source_file}:{line}:{occurrence}"


class Relationship(BaseModel):
    """A directed or undirected, optionally labeled link declared in a document.

    Attributes:
        id: Stable ID derived from source, line and occurrence index
        source_file: Identifier of the declaring document (no extension)
        target_file: Identifier of the target document (no extension)
        direction: Direction of the relationship
        label: Optional label text, None if unlabeled
        line: 1-indexed line of the declaration in the source document
        occurrence: Index of the declaration among all matches in the source
    """

    model_config = {"frozen": True}

    id: str
    source_file: str
    target_file: str
    direction: Direction
    label: str | None = None
    line: int
    occurrence: int = 0

    @field_validator("label", mode="before")
    @classmethod
    def _blank_label_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    def with_source(self, source_file: str) -> "Relationship":
        """Return a copy owned by another source, with its ID recomputed."""
        return self.model_copy(
            update={
                "source_file": source_file,
                "id": relationship_id(source_file, self.line, self.occurrence),
            }
        )

    def with_target(self, target_file: str) -> "Relationship":
        """Return a copy pointing at another target. The ID does not change."""
        return self.model_copy(update={"target_file": target_file})
