from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path

from .client import DEFAULT_STORAGE_DOMAIN
from .transport import DEFAULT_TIMEOUT

LOGGER = logging.getLogger(__name__)


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    storage_domain: str = DEFAULT_STORAGE_DOMAIN
    default_region: str = "nyc3"
    request_timeout: int = DEFAULT_TIMEOUT
    remember_last_bucket: bool = False
    last_bucket: str = ""


def _positive_int(value: object, default: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _non_empty_str(value: object, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".spaces_browser_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable settings file %s", self._path)
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        last_bucket = data.get("last_bucket", "")
        return AppSettings(
            storage_domain=_non_empty_str(data.get("storage_domain"), AppSettings.storage_domain),
            default_region=_non_empty_str(data.get("default_region"), AppSettings.default_region),
            request_timeout=_positive_int(data.get("request_timeout"), AppSettings.request_timeout),
            remember_last_bucket=data.get("remember_last_bucket") is True,
            last_bucket=last_bucket if isinstance(last_bucket, str) else "",
        )

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["request_timeout"] = max(int(settings.request_timeout), 1)
        payload["remember_last_bucket"] = bool(settings.remember_last_bucket)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            LOGGER.warning("Unable to write settings file %s", self._path)
            return
