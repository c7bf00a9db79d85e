from __future__ import annotations
"""Decoding of the service's XML list documents."""
from datetime import datetime, timezone
import hashlib
import logging
from typing import Callable, Optional, Union
from xml.etree import ElementTree as ET

from .exceptions import MalformedBodyError, UnexpectedDocumentError
from .models import BucketList, BucketRecord, ErrorRecord, ObjectList, ObjectRecord

EXPECT_BUCKETS = "buckets"
EXPECT_OBJECTS = "objects"

DecodedResponse = Union[BucketList, ObjectList, ErrorRecord]

LOGGER = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _strip_namespaces(root: ET.Element) -> None:
    for element in root.iter():
        if isinstance(element.tag, str):
            element.tag = _local_name(element.tag)


def _child_text(element: ET.Element, name: str, default: str = "") -> str:
    child = element.find(name)
    if child is None or child.text is None:
        return default
    return child.text


def _parse_size(value: str) -> int:
    try:
        size = int(value.strip())
    except (AttributeError, ValueError):
        return 0
    return size if size >= 0 else 0


class ResponseDecoder:
    """Turns raw response bodies into records.

    Bucket records take their region from ``region`` because the
    ``ListAllMyBucketsResult`` document does not carry one per bucket.
    """

    def __init__(self, region: str = "", *, now: Callable[[], str] | None = None):
        self._region = region
        self._now = now or _utc_now_iso

    def decode(self, body: bytes, *, expected: str = EXPECT_OBJECTS) -> DecodedResponse:
        if expected not in (EXPECT_BUCKETS, EXPECT_OBJECTS):
            raise ValueError("expected must be either 'buckets' or 'objects'")
        root = self._parse(body)

        error = self._find_error(root)
        if error is not None:
            return ErrorRecord(
                code=_child_text(error, "Code"),
                message=_child_text(error, "Message"),
            )

        buckets = root.findall(".//Bucket")
        contents = root.findall(".//Contents")
        if expected == EXPECT_BUCKETS:
            if contents:
                raise UnexpectedDocumentError(expected, root.tag)
            return BucketList(buckets=[self._decode_bucket(node) for node in buckets])
        if buckets:
            raise UnexpectedDocumentError(expected, root.tag)
        return self._decode_object_list(root, contents)

    def decode_error(self, body: bytes) -> Optional[ErrorRecord]:
        """Return the error document in ``body``, if there is one."""

        try:
            root = self._parse(body)
        except MalformedBodyError:
            return None
        error = self._find_error(root)
        if error is None:
            return None
        return ErrorRecord(code=_child_text(error, "Code"), message=_child_text(error, "Message"))

    def _parse(self, body: bytes) -> ET.Element:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as exc:
            digest = hashlib.sha256(body or b"").hexdigest()
            LOGGER.debug("Unable to parse response body (%d bytes, sha256=%s)", len(body or b""), digest)
            raise MalformedBodyError(len(body or b""), digest, str(exc)) from exc
        _strip_namespaces(root)
        return root

    def _find_error(self, root: ET.Element) -> Optional[ET.Element]:
        if root.tag == "Error":
            return root
        return root.find(".//Error")

    def _decode_bucket(self, node: ET.Element) -> BucketRecord:
        return BucketRecord(
            name=_child_text(node, "Name"),
            region=self._region,
            created_at=_child_text(node, "CreationDate") or self._now(),
        )

    def _decode_object_list(self, root: ET.Element, contents: list[ET.Element]) -> ObjectList:
        prefix_node = root.find("Prefix")
        prefix = None
        if prefix_node is not None:
            prefix = prefix_node.text or ""
        return ObjectList(
            objects=[self._decode_object(node) for node in contents],
            name=_child_text(root, "Name"),
            prefix=prefix,
            is_truncated=_child_text(root, "IsTruncated").strip().lower() == "true",
        )

    def _decode_object(self, node: ET.Element) -> ObjectRecord:
        return ObjectRecord(
            key=_child_text(node, "Key"),
            size=_parse_size(_child_text(node, "Size", "0")),
            last_modified=_child_text(node, "LastModified"),
            etag=_child_text(node, "ETag").replace('"', ""),
        )
