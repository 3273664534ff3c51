"""Build Rich renderables from the dashboard view model."""

from __future__ import annotations

from rich.cells import cell_len
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .actions import Action
from .keys import Key, KeyKind
from .state import InputMode, Phase, ViewModel
from .theme import (
    cursor_prefix,
    dim_separator,
    get_theme,
    keybinding_hint,
    row_style,
    toggle_badge,
)
from .types import Filter, ViewSort

# Header, separator, table header, input line, selection line, footer and spacing.
CHROME_ROWS = 8

INPUT_PROMPT = "/ "

_HINT_ACTIONS = [
    Action.NAVIGATE_DOWN,
    Action.NAVIGATE_UP,
    Action.TOGGLE_SELECT,
    Action.SHOW_INPUT,
    Action.CLOSE_POPUP,
    Action.QUIT,
]


def viewport_height(console_height: int) -> int:
    """Rows available for the country table, never less than one."""
    return max(1, console_height - CHROME_ROWS)


def key_label(key: Key) -> str:
    if key.kind is KeyKind.CHAR:
        return key.value
    if key.kind is KeyKind.FUNCTION:
        return f"F{key.value}"
    if key.kind is KeyKind.CTRL:
        return f"^{key.value.upper()}"
    return {KeyKind.ENTER: "↵", KeyKind.ESC: "esc"}.get(key.kind, key.kind.value)


def _header(model: ViewModel) -> str:
    theme = get_theme()
    filters = " ".join(toggle_badge(str(f), f in model.filters) for f in Filter)
    sort = " ".join(toggle_badge(str(s), s is model.sort) for s in ViewSort)
    return (
        f"[bold {theme.accent_rich}]mirro[/bold {theme.accent_rich}] "
        f"[{theme.muted_rich}]{__version__}[/{theme.muted_rich}]  "
        f"{filters}  [{theme.muted_rich}]│[/{theme.muted_rich}]  {sort}"
    )


def _table(model: ViewModel) -> Table:
    theme = get_theme()
    table = Table(box=None, expand=True, show_edge=False, pad_edge=False)
    table.add_column("#", justify="right", style=theme.muted_rich, width=5)
    table.add_column("Country", ratio=1, no_wrap=True)
    table.add_column("Mirrors", justify="right", width=8)

    for offset, row in enumerate(model.page):
        is_current = offset == model.highlighted
        selected = row.country.code in model.selected_codes
        marker = f" [{theme.success_rich}]✓[/{theme.success_rich}]" if selected else ""
        name = f"[{row.country.code}] {row.country.name}"
        if is_current:
            name = f"{name}«"
        table.add_row(
            f"{model.page_start + offset}│",
            Text.from_markup(f"{cursor_prefix(is_current)}") + Text(name) + Text.from_markup(marker),
            str(row.count),
            style=row_style(is_current),
        )
    return table


def _scroll_start(value: str, cursor: int, room: int) -> int:
    """First character to show so the text before cursor fits in room cells."""
    start = 0
    while start < cursor and cell_len(value[start:cursor]) > room:
        start += 1
    return start


def _input_line(model: ViewModel, width: int | None = None) -> RenderableType:
    theme = get_theme()
    if model.mode is InputMode.TEXT_ENTRY:
        text = Text(INPUT_PROMPT, style=f"bold {theme.accent_rich}")
        value, cursor = model.input_text, model.input_cursor
        # Prompt plus one cell for the cursor itself.
        room = (width or 0) - len(INPUT_PROMPT) - 1
        if width and model.input_column > room:
            start = _scroll_start(value, cursor, room)
            value, cursor = value[start:], cursor - start
        text.append(value[:cursor])
        text.append(value[cursor : cursor + 1] or " ", style="reverse")
        text.append(value[cursor + 1 :])
        return text
    if model.input_text:
        return Text.from_markup(
            f"[{theme.muted_rich}]search:[/{theme.muted_rich}] {model.input_text}"
        )
    return Text("")


def _selection_line(model: ViewModel) -> str:
    theme = get_theme()
    if not model.selection:
        return f"[{theme.muted_rich}]nothing selected[/{theme.muted_rich}]"
    codes = ", ".join(sorted(model.selected_codes))
    return (
        f"[{theme.success_rich}]{len(model.selection)} mirrors[/{theme.success_rich}] "
        f"selected from {codes}"
    )


def _help_panel(model: ViewModel) -> Panel:
    lines = [
        f"[bold]{key_label(action.key):>5}[/bold]  {action.description}"
        for action in model.actions
    ]
    return Panel("\n".join(lines), title="[bold]Keys[/bold]", border_style=get_theme().accent_rich)


def _loading_panel() -> Panel:
    return Panel(
        "Fetching the latest mirror status...\n\n" + keybinding_hint(["q quit"]),
        title="[bold]mirro[/bold]",
        border_style=get_theme().info_rich,
    )


def _footer(model: ViewModel) -> str:
    hints = [
        f"{key_label(action.key)} {action.description}"
        for action in _HINT_ACTIONS
        if action in model.actions
    ]
    page = f"page {model.page_index + 1}/{max(model.page_count, 1)} · {model.total} countries"
    return keybinding_hint([page] + hints)


def render(model: ViewModel, width: int | None = None) -> RenderableType:
    """Render the whole dashboard for one frame.

    width is the console width; a search longer than it scrolls so the
    cursor stays visible.
    """
    if model.phase is Phase.LOADING:
        return _loading_panel()

    body: RenderableType = _help_panel(model) if model.show_popup else _table(model)
    return Group(
        Text.from_markup(_header(model)),
        Text.from_markup(dim_separator()),
        body,
        _input_line(model, width),
        Text.from_markup(_selection_line(model)),
        Text.from_markup(_footer(model)),
    )
