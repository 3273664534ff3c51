"""Type definitions for mirro.

Shared enums and immutable records used across the dashboard. Countries are
the list items, mirrors are their leaves. Everything here is a snapshot:
the data provider builds it once and the dashboard only ever reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path


class Protocol(str, Enum):
    """Transport a mirror is served over."""

    HTTP = "http"
    HTTPS = "https"
    RSYNC = "rsync"

    def __str__(self) -> str:
        return self.value


class Filter(str, Enum):
    """Filters that can be toggled on the country list."""

    HTTPS = "https"
    HTTP = "http"
    RSYNC = "rsync"
    IN_SYNC = "in-sync"

    def __str__(self) -> str:
        return self.value

    @property
    def protocol(self) -> Protocol | None:
        """Protocol matched by this filter, None for non-protocol filters."""
        mapping = {
            Filter.HTTPS: Protocol.HTTPS,
            Filter.HTTP: Protocol.HTTP,
            Filter.RSYNC: Protocol.RSYNC,
        }
        return mapping.get(self)


class ViewSort(str, Enum):
    """Ordering of the country list while navigating."""

    ALPHABETICAL = "alphabetical"
    MIRROR_COUNT = "mirror-count"

    def __str__(self) -> str:
        return self.value


class ExportSort(str, Enum):
    """Ordering of selected mirrors in the exported mirrorlist."""

    SCORE = "score"
    DELAY = "delay"
    DURATION = "duration"
    PERCENTAGE = "percentage"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Mirror:
    """A single mirror as reported by the status feed."""

    url: str
    protocol: Protocol
    completion_pct: float = 0.0
    delay: int | None = None
    duration_avg: float | None = None
    duration_stddev: float | None = None
    score: float | None = None
    last_sync: datetime | None = None


@dataclass(frozen=True)
class Country:
    """A country and the mirrors hosted in it."""

    code: str  # stable identifier, e.g. "DE"
    name: str
    mirrors: tuple[Mirror, ...] = ()

    @property
    def mirror_count(self) -> int:
        return len(self.mirrors)


@dataclass(frozen=True)
class MirrorStatus:
    """Full collection snapshot handed to the dashboard."""

    countries: tuple[Country, ...] = ()
    last_check: datetime | None = None

    def __len__(self) -> int:
        return len(self.countries)


@dataclass(frozen=True)
class SelectedMirror:
    """Flattened copy of a mirror taken when its country was selected.

    Decoupled from the live Country so later filter, sort or data changes
    never rewrite what was already picked.
    """

    country_code: str
    url: str
    protocol: Protocol
    completion_pct: float = 0.0
    delay: int | None = None
    duration_avg: float | None = None
    duration_stddev: float | None = None
    score: float | None = None
    last_sync: datetime | None = None

    @classmethod
    def from_mirror(cls, country_code: str, mirror: Mirror) -> "SelectedMirror":
        return cls(
            country_code=country_code,
            url=mirror.url,
            protocol=mirror.protocol,
            completion_pct=mirror.completion_pct,
            delay=mirror.delay,
            duration_avg=mirror.duration_avg,
            duration_stddev=mirror.duration_stddev,
            score=mirror.score,
            last_sync=mirror.last_sync,
        )


@dataclass(frozen=True)
class ViewRow:
    """One row of the filtered view: a country and its matching mirror count."""

    country: Country
    count: int


@dataclass(frozen=True)
class ExportSettings:
    """Where and how the selection is written when the session ends."""

    outfile: Path = Path("mirrorlist")
    limit: int = 50
    order: ExportSort = ExportSort.SCORE
