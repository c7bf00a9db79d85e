from __future__ import annotations
"""Credential persistence backed by a JSON file and the OS keychain."""
from dataclasses import asdict
import json
import logging
from pathlib import Path
from typing import Optional, Protocol

import keyring
from keyring.errors import KeyringError

from .exceptions import CredentialStoreError
from .models import Credentials

CREDENTIALS_KEY = "spaces_credentials"
KEYCHAIN_SERVICE = "spaces-browser"

LOGGER = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def get(self) -> Optional[Credentials]:
        ...

    def put(self, credentials: Credentials) -> None:
        ...

    def clear(self) -> None:
        ...


class KeychainStore:
    """Encapsulates OS keychain access for secrets."""

    def __init__(self, service_name: str = KEYCHAIN_SERVICE):
        self._service_name = service_name

    def get_secret(self, name: str) -> str:
        if not name:
            return ""
        try:
            return keyring.get_password(self._service_name, name) or ""
        except KeyringError:
            LOGGER.warning("Unable to read secret '%s' from the keychain", name)
            return ""

    def set_secret(self, name: str, secret: str) -> None:
        if not name:
            return
        if not secret:
            self.delete_secret(name)
            return
        try:
            keyring.set_password(self._service_name, name, secret)
        except KeyringError as exc:
            raise CredentialStoreError(f"Unable to store secret '{name}' in the keychain: {exc}") from exc

    def delete_secret(self, name: str) -> None:
        if not name:
            return
        try:
            keyring.delete_password(self._service_name, name)
        except KeyringError:
            # Nothing stored under this name.
            return


class KeyringCredentialStore:
    """Stores one set of credentials under a fixed name.

    The access key id and region live in a JSON file; the secret key is kept
    in the keychain so it never touches disk in plain text.
    """

    def __init__(
        self,
        storage_path: str | Path | None = None,
        *,
        name: str = CREDENTIALS_KEY,
        keychain: KeychainStore | None = None,
    ):
        if storage_path is None:
            storage_path = Path.home() / ".spaces_browser_credentials.json"
        self._path = Path(storage_path)
        self._name = name
        self._keychain = keychain or KeychainStore()

    def get(self) -> Optional[Credentials]:
        LOGGER.debug("Retrieving stored credentials")
        entry = self._read_entry()
        if entry is None:
            LOGGER.debug("No stored credentials found")
            return None
        try:
            access_key_id = entry["access_key_id"]
            region = entry["region"]
        except KeyError:
            return None

        secret = entry.get("secret_access_key", "")
        if secret:
            # Move plaintext secrets written by hand into the keychain.
            try:
                self._keychain.set_secret(self._name, secret)
            except CredentialStoreError as exc:
                LOGGER.warning("Keeping plaintext secret in %s: %s", self._path, exc)
            else:
                self._write_entry({"access_key_id": access_key_id, "region": region})
        else:
            secret = self._keychain.get_secret(self._name)
        if not (access_key_id and secret and region):
            return None
        return Credentials(access_key_id=access_key_id, secret_access_key=secret, region=region)

    def put(self, credentials: Credentials) -> None:
        LOGGER.debug("Storing credentials for region '%s'", credentials.region)
        # The JSON entry is only written once the secret is in the keychain.
        self._keychain.set_secret(self._name, credentials.secret_access_key)
        payload = asdict(credentials)
        payload.pop("secret_access_key")
        self._write_entry(payload)

    def clear(self) -> None:
        LOGGER.debug("Clearing stored credentials")
        self._keychain.delete_secret(self._name)
        data = self._read_all()
        if self._name in data:
            del data[self._name]
            self._write_all(data)

    def _read_entry(self) -> Optional[dict]:
        entry = self._read_all().get(self._name)
        return entry if isinstance(entry, dict) else None

    def _write_entry(self, entry: dict[str, str]) -> None:
        data = self._read_all()
        data[self._name] = entry
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class MemoryCredentialStore:
    """Process-local store, for callers that must not persist anything."""

    def __init__(self, credentials: Credentials | None = None):
        self._credentials = credentials

    def get(self) -> Optional[Credentials]:
        return self._credentials

    def put(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def clear(self) -> None:
        self._credentials = None
