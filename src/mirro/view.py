"""Filter and sort state for the country list.

``derive_view`` is the only place the filtered view is built. It is pure:
the same snapshot and options always produce the same rows, so the
dashboard can rebuild it after every change instead of patching it.

Two orderings live here and must not be mixed up: ``ViewSort`` orders the
rows the user navigates, ``ExportSort`` orders the mirrors written out at
the end of the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Callable, Iterable

from .types import (
    Country,
    ExportSort,
    Filter,
    Mirror,
    MirrorStatus,
    SelectedMirror,
    ViewRow,
    ViewSort,
)

logger = logging.getLogger(__name__)

IN_SYNC_WINDOW = timedelta(hours=24)

DEFAULT_FILTERS: tuple[Filter, ...] = (Filter.HTTPS, Filter.HTTP)


@dataclass(frozen=True)
class ViewOptions:
    """Active filters, sort order and free-text query.

    Attributes:
        filters: Active filters, in the order they were enabled, no duplicates.
        sort: Single-element tuple holding the most recently chosen order.
        query: Case-insensitive text matched against country name or code.
    """

    filters: tuple[Filter, ...] = DEFAULT_FILTERS
    sort: tuple[ViewSort, ...] = (ViewSort.ALPHABETICAL,)
    query: str = ""

    @property
    def active_sort(self) -> ViewSort:
        return self.sort[-1] if self.sort else ViewSort.ALPHABETICAL


def toggle_filter(options: ViewOptions, f: Filter) -> ViewOptions:
    """Remove f if active, otherwise add it."""
    if f in options.filters:
        logger.debug("filter removed: %s", f)
        filters = tuple(active for active in options.filters if active != f)
    else:
        logger.debug("filter added: %s", f)
        filters = options.filters + (f,)
    return replace(options, filters=filters)


def set_sort(options: ViewOptions, order: ViewSort) -> ViewOptions:
    """Replace the active view sort with order."""
    logger.debug("view sort: %s", order)
    return replace(options, sort=(order,))


def with_query(options: ViewOptions, query: str) -> ViewOptions:
    return replace(options, query=query)


def is_in_sync(mirror: Mirror, status: MirrorStatus) -> bool:
    """Whether mirror synced within a day of the last status check."""
    if mirror.last_sync is None:
        return False
    if status.last_check is None:
        return True
    return status.last_check - mirror.last_sync <= IN_SYNC_WINDOW


def _mirror_passes(mirror: Mirror, options: ViewOptions, status: MirrorStatus) -> bool:
    protocols = {f.protocol for f in options.filters if f.protocol is not None}
    if protocols and mirror.protocol not in protocols:
        return False
    if Filter.IN_SYNC in options.filters and not is_in_sync(mirror, status):
        return False
    return True


def _filter_matches(f: Filter, country: Country, status: MirrorStatus) -> bool:
    if f is Filter.IN_SYNC:
        return any(is_in_sync(m, status) for m in country.mirrors)
    return any(m.protocol == f.protocol for m in country.mirrors)


def _country_passes(country: Country, options: ViewOptions, status: MirrorStatus) -> bool:
    if options.query:
        needle = options.query.casefold()
        if needle not in country.name.casefold() and needle not in country.code.casefold():
            return False
    # Countries without mirrors have nothing to judge.
    if not country.mirrors:
        return True
    return all(_filter_matches(f, country, status) for f in options.filters)


def derive_view(status: MirrorStatus | None, options: ViewOptions) -> tuple[ViewRow, ...]:
    """Build the filtered, sorted view of the snapshot.

    A country is kept when it matches every active filter (and the query).
    Its count is the number of mirrors that pass the protocol and in-sync
    filters. Sorting is stable, so ties keep the snapshot order.
    """
    if status is None:
        return ()

    rows = [
        ViewRow(
            country=country,
            count=sum(1 for m in country.mirrors if _mirror_passes(m, options, status)),
        )
        for country in status.countries
        if _country_passes(country, options, status)
    ]

    order = options.active_sort
    if order is ViewSort.MIRROR_COUNT:
        rows.sort(key=lambda row: row.count, reverse=True)
    else:
        rows.sort(key=lambda row: row.country.name.casefold())
    return tuple(rows)


# ── export ordering ──────────────────────────────────────────────────────


def _missing_last(value: float | None) -> tuple[bool, float]:
    return (value is None, value if value is not None else 0.0)


_EXPORT_KEYS: dict[ExportSort, Callable[[SelectedMirror], tuple]] = {
    ExportSort.SCORE: lambda m: _missing_last(m.score),
    ExportSort.DELAY: lambda m: _missing_last(m.delay),
    ExportSort.DURATION: lambda m: _missing_last(m.duration_avg),
    ExportSort.PERCENTAGE: lambda m: (-m.completion_pct,),
}


def export_sort_key(order: ExportSort) -> Callable[[SelectedMirror], tuple]:
    """Sort key for selected mirrors; lower sorts first, missing values last."""
    return _EXPORT_KEYS[order]


def sort_for_export(
    mirrors: Iterable[SelectedMirror],
    order: ExportSort,
    limit: int | None = None,
) -> list[SelectedMirror]:
    """Order selected mirrors for export and keep at most limit of them."""
    ordered = sorted(mirrors, key=export_sort_key(order))
    if limit is not None and limit >= 0:
        ordered = ordered[:limit]
    return ordered
