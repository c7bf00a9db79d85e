from __future__ import annotations
"""Projection of a flat key space onto folders and files."""
from typing import Iterable

from .models import HierarchyLevel, ObjectRecord

DELIMITER = "/"
ROOT_LABEL = "Root"


def project(objects: Iterable[ObjectRecord], prefix: str = "") -> HierarchyLevel:
    """Return the folders and files directly below ``prefix``.

    Keys outside ``prefix`` are ignored, and the placeholder object whose key
    equals ``prefix`` is neither a folder nor a file.
    """

    folders: dict[str, None] = {}
    files: list[ObjectRecord] = []
    for record in objects:
        key = record.key
        if not key.startswith(prefix):
            continue
        parts = key[len(prefix):].split(DELIMITER)
        if len(parts) > 1:
            folders.setdefault(parts[0], None)
        elif key != prefix:
            files.append(record)
    return HierarchyLevel(prefix=prefix, folders=list(folders), files=files)


class KeyIndex:
    """Memoizes :func:`project` over a single listing response."""

    def __init__(self, objects: Iterable[ObjectRecord]):
        self._objects = tuple(objects)
        self._levels: dict[str, HierarchyLevel] = {}

    def __len__(self) -> int:
        return len(self._objects)

    def project(self, prefix: str = "") -> HierarchyLevel:
        level = self._levels.get(prefix)
        if level is None:
            level = project(self._objects, prefix)
            self._levels[prefix] = level
        return HierarchyLevel(prefix=level.prefix, folders=list(level.folders), files=list(level.files))


def child_prefix(prefix: str, folder: str) -> str:
    return f"{prefix}{folder}{DELIMITER}"


def parent_prefix(prefix: str) -> str:
    parts = [part for part in prefix.split(DELIMITER) if part]
    if len(parts) <= 1:
        return ""
    return DELIMITER.join(parts[:-1]) + DELIMITER


def breadcrumbs(prefix: str) -> list[tuple[str, str]]:
    """Return ``(label, prefix)`` pairs from the bucket root down to ``prefix``."""

    crumbs = [(ROOT_LABEL, "")]
    parts = [part for part in prefix.split(DELIMITER) if part]
    for index, part in enumerate(parts):
        crumbs.append((part, DELIMITER.join(parts[: index + 1]) + DELIMITER))
    return crumbs
