from __future__ import annotations
"""Legacy HMAC-SHA1 ("AWS") request signing."""
from datetime import datetime, timezone
from email.utils import format_datetime

from botocore.auth import HmacV1Auth
from botocore.credentials import Credentials as BotocoreCredentials

from .exceptions import SigningError
from .models import Credentials

SCHEME_NAME = "AWS"


def format_http_date(moment: datetime) -> str:
    """Format ``moment`` as an RFC 1123 date in GMT."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def canonical_resource(resource_path: str) -> str:
    path = resource_path.split("?", 1)[0]
    return "/" + path.lstrip("/")


class RequestSigner:
    """Computes ``Authorization`` header values for a fixed key pair."""

    def __init__(self, credentials: Credentials):
        if not credentials.access_key_id:
            raise SigningError("Access key id cannot be empty")
        if not credentials.secret_access_key:
            raise SigningError("Secret access key cannot be empty")
        self._access_key_id = credentials.access_key_id
        self._auth = HmacV1Auth(
            BotocoreCredentials(credentials.access_key_id, credentials.secret_access_key)
        )

    def string_to_sign(self, method: str, resource_path: str, timestamp: str | datetime) -> str:
        if isinstance(timestamp, datetime):
            timestamp = format_http_date(timestamp)
        # No Content-MD5 and no Content-Type for list requests.
        return "\n".join(
            [method.upper(), "", "", timestamp, canonical_resource(resource_path)]
        )

    def sign(self, method: str, resource_path: str, timestamp: str | datetime) -> str:
        signature = self._auth.sign_string(self.string_to_sign(method, resource_path, timestamp))
        return f"{SCHEME_NAME} {self._access_key_id}:{signature}"

    def __repr__(self) -> str:
        return f"RequestSigner(access_key_id={self._access_key_id!r})"
