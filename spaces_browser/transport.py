from __future__ import annotations
"""HTTP transport used by :class:`~spaces_browser.client.ObjectStoreClient`."""
from dataclasses import dataclass, field
import logging
from typing import Mapping, Optional, Protocol

from botocore.awsrequest import AWSRequest
from botocore.exceptions import BotoCoreError, SSLError
from botocore.httpsession import URLLib3Session

from .exceptions import ConnectivityError, ProtocolNegotiationError

DEFAULT_TIMEOUT = 60

LOGGER = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        ...


class BotocoreTransport:
    """Sends requests through botocore's urllib3 session.

    Headers are passed through untouched and the URL is not re-normalized,
    so the signed ``Date`` and resource path reach the service as computed.
    """

    def __init__(self, *, timeout: int = DEFAULT_TIMEOUT, verify: bool = True, session=None):
        self._session = session or URLLib3Session(verify=verify, timeout=timeout)

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        request = AWSRequest(method=method, url=url, headers=dict(headers), data=body)
        try:
            response = self._session.send(request.prepare())
        except SSLError as exc:
            raise ProtocolNegotiationError(f"TLS negotiation failed for {url}: {exc}", exc) from exc
        except BotoCoreError as exc:
            raise ConnectivityError(f"Unable to reach {url}: {exc}", exc) from exc
        LOGGER.debug("%s %s -> %d", method, url, response.status_code)
        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers.items()),
            body=response.content or b"",
        )

    def close(self) -> None:
        self._session.close()
