"""Dashboard state and the reducer that drives it.

Every input (a key press, a finished download, a resize, an idle tick)
arrives as a message value. ``reduce`` takes the current ``AppState`` and
one message and returns the next state plus whether the session goes on.
Nothing else mutates dashboard state, so a recorded list of messages
replays to the same result.

Two state machines are nested here:

- ``Phase``: LOADING (only quit is enabled) until the first snapshot
  arrives, then READY with the full action set.
- ``InputMode``: COMMAND dispatches keys through the enabled actions,
  TEXT_ENTRY edits the search buffer directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union

from rich.cells import cell_len

from . import keys
from .actions import LOADING_ACTIONS, READY_ACTIONS, Action, Actions
from .keys import Key, KeyKind
from .pagination import (
    clamp_cursor,
    fragments,
    in_page_offset,
    item_at,
    next_position,
    page_count,
    page_index,
    previous_position,
)
from .selection import SelectionSet
from .types import (
    Country,
    ExportSettings,
    Filter,
    MirrorStatus,
    SelectedMirror,
    ViewRow,
    ViewSort,
)
from .view import ViewOptions, derive_view, set_sort, toggle_filter, with_query

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    LOADING = "loading"
    READY = "ready"

    def __str__(self) -> str:
        return self.value


class InputMode(str, Enum):
    COMMAND = "command"
    TEXT_ENTRY = "text-entry"

    def __str__(self) -> str:
        return self.value


class Outcome(Enum):
    CONTINUE = "continue"
    EXIT = "exit"


# ── text buffer ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextBuffer:
    """Search text with an edit cursor.

    The cursor counts characters (not bytes), so edits never split a
    multi-byte character. ``display_column`` converts it to terminal cells
    for drawing, where wide characters take two columns.
    """

    text: str = ""
    cursor: int = 0

    def __post_init__(self):
        object.__setattr__(self, "cursor", max(0, min(self.cursor, len(self.text))))

    @property
    def display_column(self) -> int:
        return cell_len(self.text[: self.cursor])

    def insert(self, ch: str) -> "TextBuffer":
        text = self.text[: self.cursor] + ch + self.text[self.cursor :]
        return TextBuffer(text, self.cursor + len(ch))

    def backspace(self) -> "TextBuffer":
        if self.cursor == 0:
            return self
        text = self.text[: self.cursor - 1] + self.text[self.cursor :]
        return TextBuffer(text, self.cursor - 1)

    def delete(self) -> "TextBuffer":
        if self.cursor >= len(self.text):
            return self
        text = self.text[: self.cursor] + self.text[self.cursor + 1 :]
        return TextBuffer(text, self.cursor)

    def left(self) -> "TextBuffer":
        return TextBuffer(self.text, self.cursor - 1)

    def right(self) -> "TextBuffer":
        return TextBuffer(self.text, self.cursor + 1)

    def home(self) -> "TextBuffer":
        return TextBuffer(self.text, 0)

    def end(self) -> "TextBuffer":
        return TextBuffer(self.text, len(self.text))


# ── messages ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class KeyPressed:
    key: Key


@dataclass(frozen=True)
class ItemsLoaded:
    """Replace the whole snapshot (fresh download or fallback data)."""

    status: MirrorStatus
    source: str = "remote"


@dataclass(frozen=True)
class FetchRequested:
    """A background fetch was handed to the I/O worker."""


@dataclass(frozen=True)
class FetchFailed:
    reason: str


@dataclass(frozen=True)
class DispatchFailed:
    """The I/O worker could not accept a request."""

    reason: str


@dataclass(frozen=True)
class Resized:
    height: int


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class ConfigReloaded:
    export: ExportSettings


Message = Union[
    KeyPressed,
    ItemsLoaded,
    FetchRequested,
    FetchFailed,
    DispatchFailed,
    Resized,
    Tick,
    ConfigReloaded,
]


# ── state ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AppState:
    """Complete dashboard state.

    Attributes:
        phase: LOADING until a snapshot arrives, then READY.
        mode: COMMAND or TEXT_ENTRY.
        buffer: Search text, also applied as the view query.
        options: Active filters, view sort and query.
        status: Current snapshot, None while loading.
        rows: Filtered view derived from status and options.
        cursor: Offset into rows.
        viewport_height: Table rows that fit on screen, 0 before first frame.
        selection: Mirrors picked so far.
        show_popup: Loading popup in LOADING, help popup in READY.
        export: Export settings for the end of the session.
    """

    phase: Phase = Phase.LOADING
    mode: InputMode = InputMode.COMMAND
    buffer: TextBuffer = field(default_factory=TextBuffer)
    options: ViewOptions = field(default_factory=ViewOptions)
    status: MirrorStatus | None = None
    rows: tuple[ViewRow, ...] = ()
    cursor: int = 0
    viewport_height: int = 0
    selection: SelectionSet = field(default_factory=SelectionSet)
    show_popup: bool = True
    export: ExportSettings = field(default_factory=ExportSettings)

    @property
    def actions(self) -> Actions:
        return READY_ACTIONS if self.phase is Phase.READY else LOADING_ACTIONS

    @property
    def page_height(self) -> int:
        """Viewport height, or one page holding everything before first frame."""
        if self.viewport_height > 0:
            return self.viewport_height
        return max(len(self.rows), 1)

    def focused(self) -> Country | None:
        row = item_at(self.cursor, self.rows, self.page_height)
        return row.country if row is not None else None


@dataclass(frozen=True)
class Transition:
    state: AppState
    outcome: Outcome = Outcome.CONTINUE


def initial_state(
    filters: tuple[Filter, ...] | None = None,
    view: ViewSort = ViewSort.ALPHABETICAL,
    export: ExportSettings | None = None,
) -> AppState:
    options = ViewOptions(sort=(view,))
    if filters is not None:
        options = replace(options, filters=tuple(dict.fromkeys(filters)))
    return AppState(options=options, export=export or ExportSettings())


def _rebuild(state: AppState, **changes) -> AppState:
    """Apply changes, re-derive the view and reset the cursor."""
    state = replace(state, **changes)
    return replace(state, rows=derive_view(state.status, state.options), cursor=0)


def _continue(state: AppState) -> Transition:
    return Transition(state, Outcome.CONTINUE)


_FILTER_ACTIONS = {
    Action.FILTER_HTTPS: Filter.HTTPS,
    Action.FILTER_HTTP: Filter.HTTP,
    Action.FILTER_RSYNC: Filter.RSYNC,
    Action.FILTER_SYNCING: Filter.IN_SYNC,
}

_SORT_ACTIONS = {
    Action.SORT_ALPHABETICAL: ViewSort.ALPHABETICAL,
    Action.SORT_MIRROR_COUNT: ViewSort.MIRROR_COUNT,
}


def _run_action(state: AppState, action: Action) -> Transition:
    if action is Action.QUIT:
        return Transition(state, Outcome.EXIT)
    if action is Action.CLOSE_POPUP:
        return _continue(replace(state, show_popup=not state.show_popup))
    if action is Action.SHOW_INPUT:
        return _continue(replace(state, mode=InputMode.TEXT_ENTRY))
    if action is Action.NAVIGATE_UP:
        return _continue(replace(state, cursor=previous_position(state.cursor, len(state.rows))))
    if action is Action.NAVIGATE_DOWN:
        return _continue(replace(state, cursor=next_position(state.cursor, len(state.rows))))
    if action in _FILTER_ACTIONS:
        return _continue(
            _rebuild(state, options=toggle_filter(state.options, _FILTER_ACTIONS[action]))
        )
    if action in _SORT_ACTIONS:
        return _continue(_rebuild(state, options=set_sort(state.options, _SORT_ACTIONS[action])))
    if action is Action.TOGGLE_SELECT:
        country = state.focused()
        if country is None:
            return _continue(state)
        return _continue(replace(state, selection=state.selection.toggle(country)))
    logger.warning("Unhandled action %s", action)
    return _continue(state)


def _edit_buffer(state: AppState, buffer: TextBuffer) -> AppState:
    if buffer.text == state.buffer.text:
        return replace(state, buffer=buffer)
    return _rebuild(state, buffer=buffer, options=with_query(state.options, buffer.text))


_BUFFER_MOVES = {
    KeyKind.LEFT: TextBuffer.left,
    KeyKind.RIGHT: TextBuffer.right,
    KeyKind.HOME: TextBuffer.home,
    KeyKind.END: TextBuffer.end,
    KeyKind.BACKSPACE: TextBuffer.backspace,
    KeyKind.DELETE: TextBuffer.delete,
}


def _reduce_text_entry(state: AppState, key: Key) -> Transition:
    # Printable keys are text here, including q/j/k/1/2 which are
    # command bindings outside of text entry.
    if key.is_printable():
        return _continue(_edit_buffer(state, state.buffer.insert(key.value)))
    if key.kind in _BUFFER_MOVES:
        return _continue(_edit_buffer(state, _BUFFER_MOVES[key.kind](state.buffer)))
    if key == keys.ESC:
        return _continue(replace(state, mode=InputMode.COMMAND))
    if key == keys.ENTER:
        # Submit: keep the query applied and go back to command mode.
        return _continue(replace(state, mode=InputMode.COMMAND, cursor=0))
    logger.warning("No action associated to %s", key)
    return _continue(state)


def _reduce_key(state: AppState, key: Key) -> Transition:
    if state.mode is InputMode.TEXT_ENTRY:
        return _reduce_text_entry(state, key)

    action = state.actions.find(key)
    if action is not None:
        return _run_action(state, action)
    if key.is_exit():
        return Transition(state, Outcome.EXIT)
    logger.warning("No action associated to %s", key)
    return _continue(state)


def reduce(state: AppState, message: Message) -> Transition:
    """Apply one message to state and return the next state."""
    if isinstance(message, KeyPressed):
        transition = _reduce_key(state, message.key)
    elif isinstance(message, ItemsLoaded):
        logger.info(
            "loaded %d countries (%s)", len(message.status.countries), message.source
        )
        transition = _continue(
            _rebuild(state, status=message.status, phase=Phase.READY, show_popup=False)
        )
    elif isinstance(message, FetchRequested):
        transition = _continue(replace(state, show_popup=True))
    elif isinstance(message, FetchFailed):
        logger.warning("mirror status fetch failed: %s", message.reason)
        transition = _continue(state)
    elif isinstance(message, DispatchFailed):
        logger.error("Error from dispatch: %s", message.reason)
        transition = _continue(replace(state, show_popup=False))
    elif isinstance(message, Resized):
        if message.height <= 0:
            logger.debug("ignoring non-positive viewport height %d", message.height)
            transition = _continue(state)
        else:
            transition = _continue(replace(state, viewport_height=message.height))
    elif isinstance(message, ConfigReloaded):
        logger.info("export settings reloaded")
        transition = _continue(replace(state, export=message.export))
    elif isinstance(message, Tick):
        transition = _continue(state)
    else:
        logger.warning("Unknown message %r", message)
        transition = _continue(state)

    cursor = clamp_cursor(transition.state.cursor, len(transition.state.rows))
    if cursor != transition.state.cursor:
        return Transition(replace(transition.state, cursor=cursor), transition.outcome)
    return transition


def set_items(state: AppState, status: MirrorStatus) -> AppState:
    """Replace the snapshot, reset the cursor and rebuild the view."""
    return reduce(state, ItemsLoaded(status)).state


def tick(state: AppState) -> AppState:
    """Idle hook; currently leaves state untouched."""
    return reduce(state, Tick()).state


# ── view model ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ViewModel:
    """Read-only snapshot handed to the renderer."""

    phase: Phase
    mode: InputMode
    page: tuple[ViewRow, ...]
    page_start: int
    highlighted: int
    page_index: int
    page_count: int
    total: int
    selection: tuple[SelectedMirror, ...]
    selected_codes: frozenset[str]
    input_text: str
    input_cursor: int
    input_column: int
    show_popup: bool
    filters: tuple[Filter, ...]
    sort: ViewSort
    actions: Actions


def view_model(state: AppState) -> ViewModel:
    height = state.page_height
    pages = fragments(state.rows, height)
    if pages:
        index = page_index(state.cursor, height)
        page = tuple(pages[index])
        offset = in_page_offset(state.cursor, height)
    else:
        index, page, offset = 0, (), 0
    return ViewModel(
        phase=state.phase,
        mode=state.mode,
        page=page,
        page_start=index * height,
        highlighted=offset,
        page_index=index,
        page_count=page_count(len(state.rows), height),
        total=len(state.rows),
        selection=state.selection.entries,
        selected_codes=frozenset(state.selection.countries()),
        input_text=state.buffer.text,
        input_cursor=state.buffer.cursor,
        input_column=state.buffer.display_column,
        show_popup=state.show_popup,
        filters=state.options.filters,
        sort=state.options.active_sort,
        actions=state.actions,
    )
