"""Keyboard bindings of the interface."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KeyBinding:
    """The key names that trigger an action, with a short help label."""

    keys: tuple[str, ...]
    help_key: str = ""
    help_desc: str = ""

    def matches(self, key: str) -> bool:
        """Whether the key name ``key`` triggers this binding."""
        return key in self.keys


def _bind(keys: tuple[str, ...], help_key: str, help_desc: str) -> KeyBinding:
    return KeyBinding(keys, help_key, help_desc)


@dataclass(frozen=True)
class KeyMap:
    """All bindings; the defaults are vim-style."""

    up: KeyBinding = _bind(("k", "up"), "k/↑", "up")
    down: KeyBinding = _bind(("j", "down"), "j/↓", "down")
    select: KeyBinding = _bind(("l", "enter", "right"), "l/enter", "select")
    back: KeyBinding = _bind(("h", "b", "left", "esc"), "h/b", "back")
    top: KeyBinding = _bind(("g", "home"), "g", "top")
    bottom: KeyBinding = _bind(("G", "end"), "G", "bottom")
    filter_repo: KeyBinding = _bind(("r",), "r", "filter repo")
    filter_author: KeyBinding = _bind(("a",), "a", "filter author")
    filter_reviewer: KeyBinding = _bind(("v",), "v", "filter reviewer")
    filter_label: KeyBinding = _bind(("L",), "L", "filter labels")
    filter_draft: KeyBinding = _bind(("d",), "d", "filter draft")
    filter_accepted: KeyBinding = _bind(("c",), "c", "filter accepted")
    cycle_repo_next: KeyBinding = _bind(("tab",), "tab", "next repo")
    cycle_repo_prev: KeyBinding = _bind(("shift+tab",), "shift+tab", "prev repo")
    cycle_author_next: KeyBinding = _bind(("]",), "]", "next author")
    cycle_author_prev: KeyBinding = _bind(("[",), "[", "prev author")
    toggle_author_negate: KeyBinding = _bind(("!",), "!", "negate author")
    toggle_unread: KeyBinding = _bind(("u",), "u", "toggle unread")
    sync: KeyBinding = _bind(("R",), "R", "sync")
    claude: KeyBinding = _bind(("C",), "C", "claude")
    next: KeyBinding = _bind(("n",), "n", "next")
    prev: KeyBinding = _bind(("p",), "p", "prev")
    web: KeyBinding = _bind(("w",), "w", "web")
    quit: KeyBinding = _bind(("q", "ctrl+c"), "q", "quit")


KEYS = KeyMap()