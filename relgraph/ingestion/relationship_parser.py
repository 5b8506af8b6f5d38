"""Extraction of relationship declarations from document text.

The canonical declaration is ``<<descriptor>>[[target]]``. Boundary ``+``
characters in the descriptor encode direction: a trailing ``+`` points out of
the source, a leading ``+`` points into it, both mean bidirectional. A
descriptor without boundary ``+`` but with some alphanumeric text is an
undirected labeled edge. Anything else is ignored.

The legacy single-delimiter form ``<descriptor>[[target]]`` is only scanned
when ``legacy_syntax`` is enabled.
"""

import re
from typing import Iterator, NamedTuple

from relgraph.domain.relationship import Direction, Relationship, relationship_id
from relgraph.ingestion.identifiers import DEFAULT_EXTENSION, normalize_identifier

DECLARATION_PATTERN = re.compile(
    r"<<(?P<descriptor>[^>]*?)>>\[\[\s*(?P<target>.*?)\s*\]\]"
)

DECLARATION_PATTERN_WITH_LEGACY = re.compile(
    r"<<(?P<descriptor>[^>]*?)>>\[\[\s*(?P<target>.*?)\s*\]\]|"
    r"<(?P<legacy_descriptor>[+\-][^>]*?[+\-])>\s*\[\[\s*(?P<legacy_target>.*?)\s*\]\]"
)

_ALPHANUMERIC = re.compile(r"[^\W_]")

ARROW_SYMBOLS: dict[str, str] = {
    "outgoing": "→",
    "incoming": "←",
    "bidirectional": "↔",
    "undirected": "—",
}


class DeclarationMatch(NamedTuple):
    """A raw declaration found by the lexical scan."""

    start: int
    end: int
    descriptor: str
    target: str
    legacy: bool = False


def scan_declarations(text: str, *, legacy_syntax: bool = False) -> Iterator[DeclarationMatch]:
    """Yield every non-overlapping declaration in the text, left to right.

    Each call starts a fresh scan, so the result can be iterated again by
    calling the function again.

    Args:
        text: Raw document text
        legacy_syntax: Also match the single-delimiter form

    Returns:
        Iterator of declaration matches, targets not yet trimmed
    """
    pattern = DECLARATION_PATTERN_WITH_LEGACY if legacy_syntax else DECLARATION_PATTERN
    for match in pattern.finditer(text):
        if match.group("descriptor") is not None:
            yield DeclarationMatch(
                start=match.start(),
                end=match.end(),
                descriptor=match.group("descriptor"),
                target=match.group("target"),
            )
        else:
            yield DeclarationMatch(
                start=match.start(),
                end=match.end(),
                descriptor=match.group("legacy_descriptor"),
                target=match.group("legacy_target"),
                legacy=True,
            )


def parse_descriptor(descriptor: str) -> tuple[Direction, str | None] | None:
    """Classify a double-delimiter descriptor.

    Args:
        descriptor: Text between ``<<`` and ``>>``

    Returns:
        Tuple of (direction, label) or None if the descriptor is malformed
    """
    d = descriptor.strip()

    if d == "-+":
        return "outgoing", None
    if d == "+-":
        return "incoming", None
    if d == "++":
        return "bidirectional", None

    starts, ends = d.startswith("+"), d.endswith("+")
    if starts and ends and len(d) > 2:
        return _labeled("bidirectional", d[1:-1])
    if starts and not ends:
        return _labeled("incoming", d[1:])
    if ends and not starts:
        return _labeled("outgoing", d[:-1])

    if _ALPHANUMERIC.search(d):
        return "undirected", d
    return None


def parse_legacy_descriptor(descriptor: str) -> tuple[Direction, str | None] | None:
    """Classify a single-delimiter descriptor by its boundary characters.

    ``-…+`` is outgoing, ``+…-`` incoming, ``+…+`` bidirectional and ``-…-``
    undirected. The interior, if any, is the label.
    """
    d = descriptor.strip()
    if len(d) < 2 or d[0] not in "+-" or d[-1] not in "+-":
        return None

    boundaries: dict[tuple[str, str], Direction] = {
        ("-", "+"): "outgoing",
        ("+", "-"): "incoming",
        ("+", "+"): "bidirectional",
        ("-", "-"): "undirected",
    }
    label = d[1:-1].strip() or None
    return boundaries[(d[0], d[-1])], label


def _labeled(direction: Direction, raw_label: str) -> tuple[Direction, str] | None:
    label = raw_label.strip()
    if not label:
        return None
    return direction, label


def classify(declaration: DeclarationMatch) -> tuple[Direction, str | None] | None:
    """Classify a scanned declaration with the grammar it was written in."""
    if declaration.legacy:
        return parse_legacy_descriptor(declaration.descriptor)
    return parse_descriptor(declaration.descriptor)


def parse_relationships(
    text: str,
    source_id: str,
    *,
    legacy_syntax: bool = False,
    extension: str = DEFAULT_EXTENSION,
) -> list[Relationship]:
    """Parse all relationship declarations from a document.

    Malformed descriptors and empty targets are skipped silently. They still
    consume an occurrence index, so IDs of later declarations do not depend
    on whether earlier ones are valid.

    Args:
        text: Raw document text
        source_id: Identifier of the document (folder and extension are stripped)
        legacy_syntax: Also accept the single-delimiter form
        extension: Document extension stripped from targets

    Returns:
        Relationships in document order
    """
    source_id = normalize_identifier(source_id, extension)
    relationships = []

    for occurrence, declaration in enumerate(scan_declarations(text, legacy_syntax=legacy_syntax)):
        target = declaration.target.strip()
        if not target:
            continue
        target = normalize_identifier(target, extension)

        parsed = classify(declaration)
        if parsed is None:
            continue

        direction, label = parsed
        line = text.count("\n", 0, declaration.start) + 1
        relationships.append(
            Relationship(
                id=relationship_id(source_id, line, occurrence),
                source_file=source_id,
                target_file=target,
                direction=direction,
                label=label,
                line=line,
                occurrence=occurrence,
            )
        )

    return relationships


def arrow_symbol(direction: str) -> str:
    """Arrow glyph used when a declaration is displayed inline."""
    return ARROW_SYMBOLS.get(direction, "—")


def render_inline(text: str, *, legacy_syntax: bool = False) -> str:
    """Replace declarations with readable badges, e.g. ``→ manages Bob``.

    Malformed declarations are left as written.
    """
    pattern = DECLARATION_PATTERN_WITH_LEGACY if legacy_syntax else DECLARATION_PATTERN

    def replace_match(match: re.Match[str]) -> str:
        legacy = match.group("descriptor") is None
        declaration = DeclarationMatch(
            start=match.start(),
            end=match.end(),
            descriptor=match.group("legacy_descriptor") if legacy else match.group("descriptor"),
            target=match.group("legacy_target") if legacy else match.group("target"),
            legacy=legacy,
        )
        target = declaration.target.strip()
        parsed = classify(declaration)
        if not target or parsed is None:
            return match.group(0)

        direction, label = parsed
        parts = [arrow_symbol(direction), label, target]
        return " ".join(part for part in parts if part)

    return pattern.sub(replace_match, text)
