"""Mirror status provider.

Downloads the Arch Linux mirror status JSON, caches it on disk for a
configurable number of hours, and falls back to a bundled snapshot when
the network is unavailable.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from importlib import resources
from pathlib import Path
from typing import Any, Iterable

import requests

from .errors import FetchError
from .types import Country, Mirror, MirrorStatus, Protocol

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://archlinux.org/mirrors/status/json/"
DEFAULT_TIMEOUT = 10.0
CACHE_FILENAME = "status.json"
WORLDWIDE = ("WW", "Worldwide")


def _parse_datetime(raw: Any) -> datetime | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    # The feed reports UTC; timestamps without an offset are read as UTC too.
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_float(raw: Any) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _parse_mirror(entry: dict[str, Any]) -> Mirror | None:
    try:
        protocol = Protocol(str(entry.get("protocol", "")).lower())
    except ValueError:
        return None
    url = str(entry.get("url") or "").strip()
    if not url:
        return None
    delay = entry.get("delay")
    return Mirror(
        url=url,
        protocol=protocol,
        completion_pct=_optional_float(entry.get("completion_pct")) or 0.0,
        delay=int(delay) if isinstance(delay, (int, float)) else None,
        duration_avg=_optional_float(entry.get("duration_avg")),
        duration_stddev=_optional_float(entry.get("duration_stddev")),
        score=_optional_float(entry.get("score")),
        last_sync=_parse_datetime(entry.get("last_sync")),
    )


def _wanted(code: str, name: str, countries: set[str]) -> bool:
    if not countries:
        return True
    return code.casefold() in countries or name.casefold() in countries


def parse_status(payload: dict[str, Any], countries: Iterable[str] = ()) -> MirrorStatus:
    """Group mirror records by country.

    Countries appear in the order the feed first mentions them. When
    ``countries`` is given, only those (matched by code or name,
    case-insensitively) are kept.
    """
    if not isinstance(payload, dict):
        raise ValueError("mirror status payload must be a JSON object")

    wanted = {c.casefold() for c in countries}
    names: dict[str, str] = {}
    grouped: dict[str, list[Mirror]] = {}

    urls = payload.get("urls") or []
    if not isinstance(urls, list):
        raise ValueError("mirror status 'urls' must be a list")

    for entry in urls:
        if not isinstance(entry, dict):
            continue
        if entry.get("active") is False:
            continue
        code = str(entry.get("country_code") or "").strip() or WORLDWIDE[0]
        name = str(entry.get("country") or "").strip() or WORLDWIDE[1]
        if not _wanted(code, name, wanted):
            continue
        mirror = _parse_mirror(entry)
        if mirror is None:
            continue
        names.setdefault(code, name)
        grouped.setdefault(code, []).append(mirror)

    return MirrorStatus(
        countries=tuple(
            Country(code=code, name=names[code], mirrors=tuple(mirrors))
            for code, mirrors in grouped.items()
        ),
        last_check=_parse_datetime(payload.get("last_check")),
    )


def fetch_payload(url: str = DEFAULT_URL, timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any]:
    """Download the raw status JSON."""
    logger.debug("fetching %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e
    except ValueError as e:
        raise FetchError(url, f"invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise FetchError(url, "unexpected response shape")
    return payload


def _read_cache(cache_path: Path, ttl_hours: int) -> dict[str, Any] | None:
    try:
        age = time.time() - cache_path.stat().st_mtime
    except OSError:
        return None
    if age > ttl_hours * 3600:
        logger.debug("cache expired: %s", cache_path)
        return None
    try:
        data = json.loads(cache_path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("ignoring unreadable cache %s: %s", cache_path, e)
        return None
    return data if isinstance(data, dict) else None


def _write_cache(cache_path: Path, payload: dict[str, Any]) -> None:
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(json.dumps(payload))
    except OSError as e:
        logger.warning("could not write cache %s: %s", cache_path, e)


def load_status(
    url: str = DEFAULT_URL,
    *,
    ttl_hours: int = 24,
    countries: Iterable[str] = (),
    cache_dir: Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> MirrorStatus:
    """Return the mirror status, from cache when fresh, else downloaded.

    Raises:
        FetchError: When the download fails or the response is not usable.
    """
    cache_path = cache_dir / CACHE_FILENAME if cache_dir is not None else None

    if cache_path is not None and ttl_hours > 0:
        cached = _read_cache(cache_path, ttl_hours)
        if cached is not None:
            try:
                status = parse_status(cached, countries)
            except ValueError as e:
                logger.warning("ignoring malformed cache %s: %s", cache_path, e)
            else:
                logger.info("using cached mirror status from %s", cache_path)
                return status

    payload = fetch_payload(url, timeout=timeout)
    try:
        status = parse_status(payload, countries)
    except ValueError as e:
        raise FetchError(url, str(e)) from e
    if cache_path is not None:
        _write_cache(cache_path, payload)
    return status


def load_fallback(countries: Iterable[str] = ()) -> MirrorStatus:
    """Return the snapshot bundled with the package."""
    raw = (resources.files("mirro") / "data" / "fallback.json").read_text()
    return parse_status(json.loads(raw), countries)
