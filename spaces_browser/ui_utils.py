from __future__ import annotations
"""UI-agnostic helpers for formatting listings."""
from dataclasses import dataclass
from datetime import datetime
from importlib.metadata import PackageNotFoundError, metadata, version

DIST_NAME = "spaces-browser"


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str


def load_package_info(dist_name: str = DIST_NAME) -> PackageInfo:
    """Return the installed name and version, or a placeholder when running from source."""

    try:
        package_version = version(dist_name)
    except PackageNotFoundError:
        return PackageInfo(name="Spaces Browser", version="")
    return PackageInfo(name=metadata(dist_name).get("Name") or dist_name, version=package_version)


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp as sent by the service (``Z`` suffix allowed)."""

    text = (value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_last_modified(last_modified: object) -> str:
    if not last_modified:
        return "-"
    if isinstance(last_modified, str):
        parsed = parse_timestamp(last_modified)
        if parsed is None:
            return last_modified
        last_modified = parsed
    if isinstance(last_modified, datetime):
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or last_modified.isoformat()
    return str(last_modified)
