from __future__ import annotations
"""Data models representing Spaces listings."""
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union


@dataclass(frozen=True)
class Credentials:
    """Access key pair and region used to sign requests."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str


@dataclass(frozen=True)
class BucketRecord:
    """A single bucket owned by the authenticated account."""

    name: str
    region: str
    created_at: str


@dataclass(frozen=True)
class ObjectRecord:
    """A single object returned by a bucket listing."""

    key: str
    size: int = 0
    last_modified: str = ""
    etag: str = ""

    @property
    def name(self) -> str:
        return self.key.rstrip("/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error document returned by the service."""

    code: str
    message: str


@dataclass(frozen=True)
class BucketList:
    """Decoded ``ListAllMyBucketsResult`` document."""

    buckets: list[BucketRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ObjectList:
    """Decoded ``ListBucketResult`` document (a single page)."""

    objects: list[ObjectRecord] = field(default_factory=list)
    name: str = ""
    prefix: Optional[str] = None
    is_truncated: bool = False


@dataclass(frozen=True)
class Folder:
    """Pseudo-directory synthesized from a common key prefix."""

    name: str
    prefix: str


@dataclass(frozen=True)
class File:
    record: ObjectRecord

    @property
    def name(self) -> str:
        return self.record.name


HierarchyEntry = Union[Folder, File]


@dataclass
class HierarchyLevel:
    """Folders and files directly below ``prefix``."""

    prefix: str = ""
    folders: list[str] = field(default_factory=list)
    files: list[ObjectRecord] = field(default_factory=list)

    def entries(self) -> Iterator[HierarchyEntry]:
        for name in self.folders:
            yield Folder(name=name, prefix=f"{self.prefix}{name}/")
        for record in self.files:
            yield File(record=record)

    @property
    def is_empty(self) -> bool:
        return not self.folders and not self.files
