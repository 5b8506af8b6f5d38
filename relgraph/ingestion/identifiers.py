"""Normalisation of document names to graph identifiers."""

from pathlib import PurePosixPath

DEFAULT_EXTENSION = ".md"


def normalize_identifier(name: str, extension: str = DEFAULT_EXTENSION) -> str:
    """Turn a document name or path into its basename identifier.

    Folder components are dropped and a trailing document extension is
    stripped, so "Projects/Alpha.md" and "Alpha" name the same node.

    Args:
        name: Document name, file name or vault-relative path
        extension: Document extension to strip, including the dot

    Returns:
        Identifier used as source/target in relationships
    """
    basename = PurePosixPath(name.replace("\\", "/")).name or name
    if extension and basename.endswith(extension) and basename != extension:
        basename = basename[: -len(extension)]
    return basename
