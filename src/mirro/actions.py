"""Dashboard actions and their key bindings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from . import keys
from .keys import Key


class Action(str, Enum):
    """Semantic commands the dashboard understands in command mode."""

    CLOSE_POPUP = "close-popup"
    QUIT = "quit"
    SHOW_INPUT = "show-input"
    NAVIGATE_UP = "navigate-up"
    NAVIGATE_DOWN = "navigate-down"
    FILTER_HTTPS = "filter-https"
    FILTER_HTTP = "filter-http"
    FILTER_RSYNC = "filter-rsync"
    FILTER_SYNCING = "filter-syncing"
    SORT_ALPHABETICAL = "sort-alphabetical"
    SORT_MIRROR_COUNT = "sort-mirror-count"
    TOGGLE_SELECT = "toggle-select"

    def __str__(self) -> str:
        return self.value

    @property
    def key(self) -> Key:
        return KEY_BINDINGS[self]

    @property
    def description(self) -> str:
        return DESCRIPTIONS[self]


KEY_BINDINGS: dict[Action, Key] = {
    Action.CLOSE_POPUP: Key.function(1),
    Action.QUIT: Key.char("q"),
    Action.SHOW_INPUT: keys.ESC,
    Action.NAVIGATE_UP: Key.char("k"),
    Action.NAVIGATE_DOWN: Key.char("j"),
    Action.FILTER_HTTPS: Key.function(2),
    Action.FILTER_HTTP: Key.function(3),
    Action.FILTER_RSYNC: Key.function(4),
    Action.FILTER_SYNCING: Key.function(5),
    Action.SORT_ALPHABETICAL: Key.char("1"),
    Action.SORT_MIRROR_COUNT: Key.char("2"),
    Action.TOGGLE_SELECT: keys.ENTER,
}

DESCRIPTIONS: dict[Action, str] = {
    Action.CLOSE_POPUP: "toggle help",
    Action.QUIT: "quit",
    Action.SHOW_INPUT: "search",
    Action.NAVIGATE_UP: "up",
    Action.NAVIGATE_DOWN: "down",
    Action.FILTER_HTTPS: "https",
    Action.FILTER_HTTP: "http",
    Action.FILTER_RSYNC: "rsync",
    Action.FILTER_SYNCING: "in sync",
    Action.SORT_ALPHABETICAL: "sort a-z",
    Action.SORT_MIRROR_COUNT: "sort by count",
    Action.TOGGLE_SELECT: "select",
}


def _check_bindings() -> None:
    missing = [action for action in Action if action not in KEY_BINDINGS]
    if missing:
        raise ValueError(f"Actions without a key binding: {missing}")
    seen: dict[Key, Action] = {}
    for action, key in KEY_BINDINGS.items():
        if key in seen:
            raise ValueError(f"{key} is bound to both {seen[key]} and {action}")
        seen[key] = action


_check_bindings()


@dataclass(frozen=True)
class Actions:
    """Ordered set of currently enabled actions."""

    enabled: tuple[Action, ...] = ()

    def find(self, key: Key) -> Action | None:
        """Return the first enabled action bound to key, or None."""
        for action in self.enabled:
            if KEY_BINDINGS[action] == key:
                return action
        return None

    def __contains__(self, action: object) -> bool:
        return action in self.enabled

    def __iter__(self):
        return iter(self.enabled)

    def __len__(self) -> int:
        return len(self.enabled)


LOADING_ACTIONS = Actions((Action.QUIT,))

READY_ACTIONS = Actions(
    (
        Action.SHOW_INPUT,
        Action.CLOSE_POPUP,
        Action.QUIT,
        Action.NAVIGATE_DOWN,
        Action.NAVIGATE_UP,
        Action.FILTER_HTTP,
        Action.FILTER_HTTPS,
        Action.FILTER_RSYNC,
        Action.FILTER_SYNCING,
        Action.SORT_ALPHABETICAL,
        Action.SORT_MIRROR_COUNT,
        Action.TOGGLE_SELECT,
    )
)
