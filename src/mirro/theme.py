"""Semantic style helpers for the dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass


SEPARATOR_WIDTH = 50


@dataclass(frozen=True)
class TuiTheme:
    """Semantic palette tokens for Rich renderers."""

    name: str
    accent_rich: str
    info_rich: str
    success_rich: str
    muted_rich: str


_BASE_THEME = TuiTheme(
    name="default",
    accent_rich="green",
    info_rich="color(24)",     # deep blue
    success_rich="color(28)",  # dark green
    muted_rich="grey50",
)

_THEMES: dict[str, TuiTheme] = {
    "default": _BASE_THEME,
    "mono": TuiTheme(
        name="mono",
        accent_rich="bold white",
        info_rich="white",
        success_rich="white",
        muted_rich="grey50",
    ),
}


_current_theme: TuiTheme = _BASE_THEME


def set_theme(name: str | None = None) -> TuiTheme:
    """Select the active theme by name (MIRRO_THEME env var wins)."""
    global _current_theme

    key = (os.environ.get("MIRRO_THEME") or name or "default").strip().lower()
    _current_theme = _THEMES.get(key, _BASE_THEME)
    return _current_theme


def get_theme() -> TuiTheme:
    """Return current active theme."""
    return _current_theme


def dim_separator(width: int = SEPARATOR_WIDTH) -> str:
    """Return a standard muted separator line."""
    theme = get_theme()
    return f"[{theme.muted_rich}]{'─' * width}[/{theme.muted_rich}]"


def cursor_prefix(is_current: bool) -> str:
    """Return the standard row cursor prefix."""
    if not is_current:
        return "├─ "
    theme = get_theme()
    return f"[{theme.accent_rich}]├─»[/{theme.accent_rich}]"


def row_style(is_current: bool) -> str:
    """Return the base style for a table row."""
    theme = get_theme()
    return f"bold {theme.accent_rich}" if is_current else theme.muted_rich


def toggle_badge(label: str, active: bool) -> str:
    """Render a filter/sort label, highlighted when active."""
    theme = get_theme()
    if active:
        return f"[bold {theme.success_rich}]{label}[/bold {theme.success_rich}]"
    return f"[{theme.muted_rich}]{label}[/{theme.muted_rich}]"


def keybinding_hint(actions: list[str]) -> str:
    """Return a standardized dim keybinding hint line."""
    theme = get_theme()
    joined = " · ".join(actions)
    return f"[{theme.muted_rich}]{joined}[/{theme.muted_rich}]"
