"""Write the selected mirrors as a pacman mirrorlist."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from . import __version__
from .types import ExportSort, Protocol, SelectedMirror
from .view import sort_for_export

logger = logging.getLogger(__name__)

SERVER_SUFFIX = "$repo/os/$arch"


def server_line(mirror: SelectedMirror) -> str:
    url = mirror.url if mirror.url.endswith("/") else mirror.url + "/"
    return f"Server = {url}{SERVER_SUFFIX}"


def format_mirrorlist(
    selection: Iterable[SelectedMirror],
    order: ExportSort = ExportSort.SCORE,
    limit: int | None = None,
    now: datetime | None = None,
) -> str:
    """Render selected mirrors as mirrorlist text.

    Mirrors are ordered by ``order`` and capped at ``limit``. rsync mirrors
    are skipped because pacman cannot download from them.
    """
    usable = [m for m in selection if m.protocol is not Protocol.RSYNC]
    mirrors = sort_for_export(usable, order, limit)
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S %Z").strip()

    lines = [
        "##",
        "## Arch Linux repository mirrorlist",
        f"## Generated by mirro {__version__} on {stamp}",
        f"## Sorted by {order}, {len(mirrors)} mirror(s)",
        "##",
        "",
    ]
    current_country = None
    for mirror in mirrors:
        if mirror.country_code != current_country:
            if current_country is not None:
                lines.append("")
            lines.append(f"## {mirror.country_code}")
            current_country = mirror.country_code
        lines.append(server_line(mirror))
    return "\n".join(lines) + "\n"


def write_mirrorlist(
    path: Path,
    selection: Iterable[SelectedMirror],
    order: ExportSort = ExportSort.SCORE,
    limit: int | None = None,
) -> int:
    """Write the mirrorlist to path; returns the number of servers written."""
    text = format_mirrorlist(selection, order, limit)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    written = sum(1 for line in text.splitlines() if line.startswith("Server = "))
    logger.info("wrote %d mirrors to %s", written, path)
    return written
