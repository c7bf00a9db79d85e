from __future__ import annotations
"""Session and navigation state on top of :class:`ObjectStoreClient`."""

import logging
from typing import Callable, NamedTuple

from .client import ObjectStoreClient
from .credentials import CredentialStore, KeyringCredentialStore
from .hierarchy import KeyIndex, breadcrumbs, child_prefix, parent_prefix
from .models import BucketRecord, Credentials, HierarchyLevel
from .settings import AppSettings
from .transport import BotocoreTransport

ClientFactory = Callable[[Credentials], ObjectStoreClient]

LOGGER = logging.getLogger(__name__)


class NotConnectedError(RuntimeError):
    """Raised when an operation is attempted before logging in."""


class Listing(NamedTuple):
    """A fetched location that has not yet been made current."""

    bucket: str
    prefix: str
    index: KeyIndex
    index_prefix: str
    complete: bool


class SpacesBrowserController:
    """Coordinates login, bucket selection and folder navigation."""

    def __init__(
        self,
        *,
        store: CredentialStore | None = None,
        settings: AppSettings | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self._store = store or KeyringCredentialStore()
        self._settings = settings or AppSettings()
        self._client_factory = client_factory or self._default_client_factory
        self._client: ObjectStoreClient | None = None
        self._bucket: str | None = None
        self._prefix = ""
        self._index: KeyIndex | None = None
        self._index_prefix = ""
        self._index_complete = False

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> ObjectStoreClient:
        return self._require_client()

    @property
    def bucket(self) -> str | None:
        return self._bucket

    @property
    def prefix(self) -> str:
        return self._prefix

    def login(self, credentials: Credentials) -> list[BucketRecord]:
        """Validate ``credentials`` by listing buckets, then persist them."""

        client, buckets = self.check_credentials(credentials)
        self.accept_login(credentials, client)
        return buckets

    def check_credentials(self, credentials: Credentials) -> tuple[ObjectStoreClient, list[BucketRecord]]:
        """List buckets with ``credentials`` without touching the session."""

        client = self._client_factory(credentials)
        return client, client.list_buckets()

    def accept_login(self, credentials: Credentials, client: ObjectStoreClient) -> None:
        self._store.put(credentials)
        self._client = client
        self._reset_bucket()
        LOGGER.debug("Logged in to region '%s'", credentials.region)

    def restore(self) -> bool:
        """Create a client from stored credentials, without contacting the service."""

        credentials = self._store.get()
        if credentials is None:
            return False
        self._client = self._client_factory(credentials)
        self._reset_bucket()
        return True

    def logout(self) -> None:
        self._store.clear()
        self._client = None
        self._reset_bucket()

    def list_buckets(self) -> list[BucketRecord]:
        return self._require_client().list_buckets()

    def open_bucket(self, name: str, prefix: str = "") -> HierarchyLevel:
        return self.commit(self.load(prefix, bucket=name))

    def close_bucket(self) -> None:
        self._reset_bucket()

    def navigate(self, prefix: str, *, refresh: bool = False) -> HierarchyLevel:
        return self.commit(self.load(prefix, refresh=refresh))

    def load(self, prefix: str, *, bucket: str | None = None, refresh: bool = False) -> Listing:
        """Fetch what is needed to show ``prefix`` without changing the session.

        ``bucket`` opens that bucket afresh; otherwise the open one is used.
        A complete listing fetched for an enclosing prefix of the same bucket
        already holds every key below it, so descending reuses it instead of
        asking the service again. ``refresh`` always fetches.
        """

        client = self._require_client()
        if bucket is not None and not bucket:
            raise ValueError("Bucket name cannot be empty")
        opening = bucket is not None
        bucket = bucket or self._require_bucket()
        if not (refresh or opening) and self._index is not None and self._covers(prefix):
            return Listing(bucket, prefix, self._index, self._index_prefix, self._index_complete)
        page = client.list_objects_page(bucket, prefix)
        return Listing(bucket, prefix, KeyIndex(page.objects), prefix, not page.is_truncated)

    def commit(self, listing: Listing) -> HierarchyLevel:
        """Make ``listing`` the current location and return its level."""

        self._bucket = listing.bucket
        self._prefix = listing.prefix
        self._index = listing.index
        self._index_prefix = listing.index_prefix
        self._index_complete = listing.complete
        return listing.index.project(listing.prefix)

    def refresh(self) -> HierarchyLevel:
        return self.navigate(self._prefix, refresh=True)

    def enter_folder(self, folder: str) -> HierarchyLevel:
        return self.navigate(child_prefix(self._prefix, folder))

    def go_up(self) -> HierarchyLevel:
        return self.navigate(parent_prefix(self._prefix))

    def breadcrumbs(self) -> list[tuple[str, str]]:
        return breadcrumbs(self._prefix)

    def object_url(self, key: str) -> str:
        return self._require_client().object_url(self._require_bucket(), key)

    def _default_client_factory(self, credentials: Credentials) -> ObjectStoreClient:
        return ObjectStoreClient(
            credentials,
            transport=BotocoreTransport(timeout=self._settings.request_timeout),
            storage_domain=self._settings.storage_domain,
        )

    def _require_client(self) -> ObjectStoreClient:
        if self._client is None:
            raise NotConnectedError("Not logged in")
        return self._client

    def _require_bucket(self) -> str:
        if not self._bucket:
            raise NotConnectedError("No bucket selected")
        return self._bucket

    def _covers(self, prefix: str) -> bool:
        return self._index_complete and prefix.startswith(self._index_prefix)

    def _reset_bucket(self) -> None:
        self._bucket = None
        self._prefix = ""
        self._index = None
        self._index_prefix = ""
        self._index_complete = False
