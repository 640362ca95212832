"""Derive document ids and types from paths relative to the docs root.

The document type is the name of the folder a markdown file lives in. Docs
for several product versions live under a version folder
(``tutorials/3.0/using.md``), in which case the type comes from the folder
above it. Versions may be written as ``2.1``, ``2.1.4`` or ``2.1.x``.
"""

from __future__ import annotations

import re
from pathlib import PurePath, PurePosixPath

from docsbuild.errors import ClassificationError

MARKDOWN_SUFFIX = ".md"

_VERSION_PATTERNS = (
    re.compile(r"\d+\.\d+(\.\d+)?"),
    re.compile(r"\d+\.\d+(\.x)?"),
)


def is_version_dir(name: str) -> bool:
    """Return True if a folder name is a version number like ``3.0`` or ``2.1.x``."""
    return any(p.fullmatch(name) for p in _VERSION_PATTERNS)


def _as_posix(relative_path: str | PurePath) -> PurePosixPath:
    if isinstance(relative_path, PurePath):
        relative_path = relative_path.as_posix()
    return PurePosixPath(relative_path.replace("\\", "/"))


def document_id(relative_path: str | PurePath) -> str:
    """Relative path with the trailing ``.md`` removed and ``/`` separators."""
    path = str(_as_posix(relative_path))
    if path.endswith(MARKDOWN_SUFFIX):
        path = path[: -len(MARKDOWN_SUFFIX)]
    return path


def classify(relative_path: str | PurePath) -> tuple[str, str]:
    """Return ``(id, type)`` for a markdown file relative to the docs root.

    Raises ClassificationError when no folder is available to take the type
    from, i.e. the file sits at the root or directly under a root-level
    version folder.
    """
    path = _as_posix(relative_path)
    folders = path.parent.parts

    if not folders:
        raise ClassificationError(str(path), "document is not inside a type folder")

    doc_type = folders[-1]
    if is_version_dir(doc_type):
        if len(folders) < 2:
            raise ClassificationError(
                str(path), f"version folder '{doc_type}' has no parent type folder"
            )
        doc_type = folders[-2]

    return document_id(path), doc_type
