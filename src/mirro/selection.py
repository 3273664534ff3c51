"""Cumulative mirror selection, one whole country at a time."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from .types import Country, SelectedMirror

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionSet:
    """Insertion-ordered selected mirrors, grouped by country code.

    Selecting a country that already has entries removes all of them;
    otherwise every current mirror of the country is copied in.
    """

    entries: tuple[SelectedMirror, ...] = ()

    def contains(self, country_code: str) -> bool:
        return any(entry.country_code == country_code for entry in self.entries)

    def toggle(self, country: Country) -> "SelectionSet":
        """Return a new set with country selected or deselected."""
        if self.contains(country.code):
            logger.info("deselected: %s", country.name)
            return SelectionSet(
                tuple(entry for entry in self.entries if entry.country_code != country.code)
            )
        logger.info("selected: %s (%d mirrors)", country.name, country.mirror_count)
        added = tuple(SelectedMirror.from_mirror(country.code, m) for m in country.mirrors)
        return SelectionSet(self.entries + added)

    def countries(self) -> list[str]:
        """Selected country codes in selection order."""
        seen: dict[str, None] = {}
        for entry in self.entries:
            seen.setdefault(entry.country_code, None)
        return list(seen)

    def __iter__(self) -> Iterator[SelectedMirror]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)
