from __future__ import annotations
"""Signed list requests against a Spaces (S3-compatible) endpoint."""
from datetime import datetime, timezone
import logging
from typing import Callable
from urllib.parse import quote

from .decoder import EXPECT_BUCKETS, EXPECT_OBJECTS, ResponseDecoder
from .exceptions import RemoteError, UnexpectedDocumentError
from .models import BucketList, BucketRecord, Credentials, ErrorRecord, ObjectList, ObjectRecord
from .signer import RequestSigner, format_http_date
from .transport import BotocoreTransport, Transport, TransportResponse

DEFAULT_STORAGE_DOMAIN = "digitaloceanspaces.com"

LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _redact(headers: dict[str, str]) -> dict[str, str]:
    redacted = dict(headers)
    if "Authorization" in redacted:
        redacted["Authorization"] = "AWS [REDACTED]"
    return redacted


class ObjectStoreClient:
    """Lists buckets and objects for a single set of credentials.

    Instances hold only immutable state, so one client may be shared between
    threads. Every call signs a fresh timestamp taken from ``clock``.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        transport: Transport | None = None,
        storage_domain: str = DEFAULT_STORAGE_DOMAIN,
        clock: Callable[[], datetime] | None = None,
    ):
        self._signer = RequestSigner(credentials)
        self._region = credentials.region
        self._endpoint = f"{credentials.region}.{storage_domain}"
        self._transport = transport or BotocoreTransport()
        self._decoder = ResponseDecoder(credentials.region)
        self._clock = clock or _utc_now
        LOGGER.debug("Initialized client for endpoint %s", self._endpoint)

    @property
    def region(self) -> str:
        return self._region

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def list_buckets(self) -> list[BucketRecord]:
        """Return the buckets owned by the authenticated account.

        Raises:
            RemoteError: the service answered with an error document.
            TransportError: no HTTP response was received.
            MalformedBodyError: the response body is not XML.
            UnexpectedDocumentError: the body is an object listing.
        """

        LOGGER.debug("Listing buckets")
        result = self._request("/", expected=EXPECT_BUCKETS)
        if not isinstance(result, BucketList):
            raise UnexpectedDocumentError(EXPECT_BUCKETS, type(result).__name__)
        LOGGER.debug("Received %d bucket(s)", len(result.buckets))
        return list(result.buckets)

    def list_objects(self, bucket: str, prefix: str = "") -> list[ObjectRecord]:
        """Return the objects under ``prefix`` in service order."""

        return list(self.list_objects_page(bucket, prefix).objects)

    def list_objects_page(self, bucket: str, prefix: str = "") -> ObjectList:
        """Return the decoded listing page for ``bucket`` and ``prefix``.

        Only the first page is fetched; ``is_truncated`` tells the caller the
        page is incomplete.
        """

        if not bucket:
            raise ValueError("Bucket name cannot be empty")
        LOGGER.debug("Listing objects in bucket '%s' (prefix=%r)", bucket, prefix)
        query = f"?prefix={quote(prefix, safe='')}" if prefix else ""
        result = self._request(f"/{bucket}", query=query, expected=EXPECT_OBJECTS)
        if not isinstance(result, ObjectList):
            raise UnexpectedDocumentError(EXPECT_OBJECTS, type(result).__name__)
        if result.is_truncated:
            LOGGER.warning(
                "Listing for bucket '%s' (prefix=%r) is truncated; only %d object(s) returned",
                bucket,
                prefix,
                len(result.objects),
            )
        return result

    def object_url(self, bucket: str, key: str) -> str:
        """Return the public URL of ``key`` in ``bucket``."""

        return f"https://{bucket}.{self._endpoint}/{quote(key, safe='/')}"

    def _request(self, path: str, *, query: str = "", expected: str) -> BucketList | ObjectList:
        timestamp = format_http_date(self._clock())
        headers = {
            "Date": timestamp,
            "Host": self._endpoint,
        }
        headers["Authorization"] = self._signer.sign("GET", path, timestamp)
        url = f"https://{self._endpoint}{path}{query}"
        LOGGER.debug("GET %s headers=%s", url, _redact(headers))

        response = self._transport.send("GET", url, headers)
        return self._handle_response(response, expected)

    def _handle_response(self, response: TransportResponse, expected: str) -> BucketList | ObjectList:
        if not response.ok:
            error = self._decoder.decode_error(response.body)
            if error is None:
                LOGGER.debug("HTTP %d without error document (%d bytes)", response.status, len(response.body))
                raise RemoteError(f"HTTP{response.status}", "Unexpected response status", response.status)
            raise RemoteError(error.code, error.message, response.status)

        result = self._decoder.decode(response.body, expected=expected)
        if isinstance(result, ErrorRecord):
            raise RemoteError(result.code, result.message, response.status)
        return result
