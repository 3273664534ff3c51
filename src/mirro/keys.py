"""Keyboard input classification.

Turns the raw strings returned by ``readchar.readkey()`` into abstract
``Key`` symbols. Classification is total: anything we do not know maps to
``UNKNOWN`` instead of raising.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum

import readchar


class KeyKind(str, Enum):
    """Abstract key categories."""

    CHAR = "char"
    ENTER = "enter"
    BACKSPACE = "backspace"
    DELETE = "delete"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    ESC = "esc"
    TAB = "tab"
    FUNCTION = "function"
    CTRL = "ctrl"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Key:
    """A classified key press.

    Attributes:
        kind: Key category.
        value: The character for CHAR, the letter for CTRL, the number for
            FUNCTION ("1".."12"), empty otherwise.
    """

    kind: KeyKind
    value: str = ""

    @classmethod
    def char(cls, ch: str) -> "Key":
        return cls(KeyKind.CHAR, ch)

    @classmethod
    def ctrl(cls, letter: str) -> "Key":
        return cls(KeyKind.CTRL, letter.lower())

    @classmethod
    def function(cls, number: int) -> "Key":
        return cls(KeyKind.FUNCTION, str(number))

    def is_exit(self) -> bool:
        """Check if key is a quit/exit key (q or Ctrl+C)."""
        return self == Key.char("q") or self == Key.ctrl("c")

    def is_printable(self) -> bool:
        return self.kind is KeyKind.CHAR

    def __str__(self) -> str:
        if self.kind is KeyKind.CHAR:
            return repr(self.value)
        if self.kind is KeyKind.CTRL:
            return f"<ctrl-{self.value}>"
        if self.kind is KeyKind.FUNCTION:
            return f"<F{self.value}>"
        return f"<{self.kind.value}>"


UNKNOWN = Key(KeyKind.UNKNOWN)
ENTER = Key(KeyKind.ENTER)
BACKSPACE = Key(KeyKind.BACKSPACE)
DELETE = Key(KeyKind.DELETE)
LEFT = Key(KeyKind.LEFT)
RIGHT = Key(KeyKind.RIGHT)
UP = Key(KeyKind.UP)
DOWN = Key(KeyKind.DOWN)
HOME = Key(KeyKind.HOME)
END = Key(KeyKind.END)
ESC = Key(KeyKind.ESC)
TAB = Key(KeyKind.TAB)


def _build_lookup() -> dict[str, Key]:
    lookup: dict[str, Key] = {}

    # Control letters first: Enter, Tab and Backspace share codes with some
    # of them and the named keys below take precedence.
    for letter in string.ascii_lowercase:
        lookup[chr(ord(letter) - ord("a") + 1)] = Key.ctrl(letter)

    for number in range(1, 13):
        raw = getattr(readchar.key, f"F{number}", None)
        if raw:
            lookup[raw] = Key.function(number)

    named = [
        ((readchar.key.ENTER, "\r", "\n"), ENTER),
        ((readchar.key.BACKSPACE, "\x7f", "\b"), BACKSPACE),
        ((readchar.key.DELETE, "\x1b[3~"), DELETE),
        ((readchar.key.LEFT, "\x1b[D"), LEFT),
        ((readchar.key.RIGHT, "\x1b[C"), RIGHT),
        ((readchar.key.UP, "\x1b[A"), UP),
        ((readchar.key.DOWN, "\x1b[B"), DOWN),
        ((readchar.key.HOME, "\x1b[H", "\x1b[1~", "\x1bOH"), HOME),
        ((readchar.key.END, "\x1b[F", "\x1b[4~", "\x1bOF"), END),
        ((readchar.key.ESC, "\x1b", "\x1b\x1b"), ESC),
        ((readchar.key.TAB, "\t"), TAB),
    ]
    for raws, key in named:
        for raw in raws:
            lookup[raw] = key
    return lookup


_LOOKUP = _build_lookup()


def classify(raw: str | None) -> Key:
    """Map a raw terminal input event to a Key.

    Never raises; unrecognized input maps to ``UNKNOWN``.
    """
    if not raw or not isinstance(raw, str):
        return UNKNOWN
    known = _LOOKUP.get(raw)
    if known is not None:
        return known
    if len(raw) == 1 and raw.isprintable():
        return Key.char(raw)
    return UNKNOWN
