from __future__ import annotations
"""View-agnostic presenter that wraps controller operations."""
from dataclasses import replace
import logging
import threading
from typing import Callable

from .client import ObjectStoreClient
from .controller import Listing, SpacesBrowserController
from .exceptions import SpacesError
from .hierarchy import child_prefix, parent_prefix
from .models import BucketRecord, Credentials, HierarchyLevel
from .settings import AppSettings, SettingsStorage
from .ui_utils import PackageInfo, load_package_info


DispatchFn = Callable[[Callable[[], None]], None]
ErrorFn = Callable[[str], None]
DoneFn = Callable[[], None]

LOGGER = logging.getLogger(__name__)


def _format_error(exc: Exception) -> str:
    return str(exc)


class PendingCall:
    """Handle for a background call; cancelling drops its result."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._finished = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._finished.wait(timeout)


class SpacesBrowserPresenter:
    """Runs background operations and returns results via callbacks."""

    def __init__(
        self,
        *,
        controller: SpacesBrowserController | None = None,
        settings_storage: SettingsStorage | None = None,
        dispatch: DispatchFn | None = None,
    ) -> None:
        self._settings_storage = settings_storage or SettingsStorage()
        self._settings = self._settings_storage.load()
        self._controller = controller or SpacesBrowserController(settings=self._settings)
        self._dispatch = dispatch or (lambda func: func())
        self._package_info = load_package_info()

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    @property
    def package_info(self) -> PackageInfo:
        return self._package_info

    @property
    def is_connected(self) -> bool:
        return self._controller.is_connected

    @property
    def current_bucket(self) -> str | None:
        return self._controller.bucket

    def breadcrumbs(self) -> list[tuple[str, str]]:
        return self._controller.breadcrumbs()

    def object_url(self, key: str) -> str:
        return self._controller.object_url(key)

    def save_settings(self, settings: AppSettings) -> None:
        self._settings = settings
        self._settings_storage.save(settings)

    def update_last_bucket(self, bucket: str) -> None:
        if not self._settings.remember_last_bucket:
            return
        self._settings = replace(self._settings, last_bucket=bucket or "")
        self._settings_storage.save(self._settings)

    def maybe_restore_session(self) -> str | None:
        """Reconnect from stored credentials and return the bucket to reopen."""

        if not self._controller.restore():
            return None
        if not self._settings.remember_last_bucket:
            return None
        return self._settings.last_bucket or None

    def logout(self) -> None:
        self._controller.logout()

    def login(
        self,
        *,
        credentials: Credentials,
        on_success: Callable[[list[BucketRecord]], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> PendingCall:
        LOGGER.debug("Logging in to region '%s'", credentials.region)

        def apply(result: tuple[ObjectStoreClient, list[BucketRecord]]) -> list[BucketRecord]:
            client, buckets = result
            self._controller.accept_login(credentials, client)
            return buckets

        return self._run(
            lambda: self._controller.check_credentials(credentials),
            on_success,
            on_error,
            on_done,
            description="login",
            apply=apply,
        )

    def refresh_buckets(
        self,
        *,
        on_success: Callable[[list[BucketRecord]], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> PendingCall:
        LOGGER.debug("Refreshing buckets")
        return self._run(
            self._controller.list_buckets,
            on_success,
            on_error,
            on_done,
            description="bucket refresh",
        )

    def open_bucket(
        self,
        *,
        bucket_name: str,
        prefix: str = "",
        on_success: Callable[[HierarchyLevel], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> PendingCall:
        LOGGER.debug("Opening bucket '%s'", bucket_name)

        def apply(listing: Listing) -> HierarchyLevel:
            level = self._controller.commit(listing)
            self.update_last_bucket(bucket_name)
            return level

        return self._run(
            lambda: self._controller.load(prefix, bucket=bucket_name),
            on_success,
            on_error,
            on_done,
            description="open bucket",
            apply=apply,
        )

    def navigate(
        self,
        *,
        prefix: str,
        on_success: Callable[[HierarchyLevel], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> PendingCall:
        LOGGER.debug("Navigating to prefix %r", prefix)
        return self._run(
            lambda: self._controller.load(prefix),
            on_success,
            on_error,
            on_done,
            description="navigation",
            apply=self._controller.commit,
        )

    def enter_folder(
        self,
        *,
        folder: str,
        on_success: Callable[[HierarchyLevel], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> PendingCall:
        return self.navigate(
            prefix=child_prefix(self._controller.prefix, folder),
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def go_up(
        self,
        *,
        on_success: Callable[[HierarchyLevel], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> PendingCall:
        return self.navigate(
            prefix=parent_prefix(self._controller.prefix),
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def _run(
        self,
        operation: Callable[[], object],
        on_success: Callable,
        on_error: ErrorFn,
        on_done: DoneFn | None,
        *,
        description: str,
        apply: Callable[[object], object] | None = None,
    ) -> PendingCall:
        """Run ``operation`` in the background.

        ``apply`` turns the result into what ``on_success`` receives. It runs
        through ``dispatch`` and is skipped for a cancelled call, so session
        state only changes for calls that were not cancelled.
        """

        pending = PendingCall()

        def deliver(callback: Callable[[], None]) -> None:
            def guarded() -> None:
                if not pending.cancelled:
                    callback()

            if not pending.cancelled:
                self._dispatch(guarded)

        def complete(result: object) -> None:
            try:
                value = apply(result) if apply else result
            except SpacesError as exc:
                LOGGER.warning("%s failed: %s", description.capitalize(), exc)
                on_error(_format_error(exc))
                return
            on_success(value)

        def task() -> None:
            try:
                result = operation()
            except SpacesError as exc:
                LOGGER.warning("%s failed: %s", description.capitalize(), exc)
                message = _format_error(exc)
                deliver(lambda: on_error(message))
            except Exception as exc:
                LOGGER.exception("Unexpected %s error", description)
                message = _format_error(exc)
                deliver(lambda: on_error(message))
            else:
                deliver(lambda: complete(result))
            finally:
                if on_done:
                    deliver(on_done)
                pending._finished.set()

        threading.Thread(target=task, daemon=True).start()
        return pending
