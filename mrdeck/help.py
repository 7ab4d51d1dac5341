"""The keyboard help popup for each view."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from mrdeck.styles import (
    ACTIVE_COLOR,
    ROUNDED,
    SELECTED,
    TITLE,
    Style,
    place_center,
    visible_width,
)

HELP_KEY = Style(foreground="252", bold=True)
HELP_DESC = Style(foreground="250")
HELP_HINT = Style(foreground="244", italic=True)


class View(IntEnum):
    """The screens of the interface."""

    MR_LIST = 0
    MR_DETAIL = 1
    THREAD = 2


@dataclass(frozen=True)
class HelpSection:
    """A titled block of (keys, description) rows."""

    title: str
    rows: tuple[tuple[str, str], ...]


GLOBAL_SECTION = HelpSection("Global", (("?", "this help"), ("q / ctrl-c", "quit")))

_SECTIONS: dict[View, tuple[HelpSection, ...]] = {
    View.MR_LIST: (
        HelpSection(
            "Navigation",
            (
                ("j / ↓", "down"),
                ("k / ↑", "up"),
                ("g", "top"),
                ("G", "bottom"),
                ("l / enter / →", "open MR"),
            ),
        ),
        HelpSection(
            "Filters",
            (
                ("r", "repo filter"),
                ("a", "author filter"),
                ("v", "reviewer filter (incl. unassigned)"),
                ("L", "labels filter"),
                ("d", "cycle draft filter"),
                ("c", "cycle accepted filter"),
                ("u", "toggle unread only"),
                ("tab / shift+tab", "cycle repo"),
                ("] / [", "cycle author"),
                ("!", "negate author filter"),
            ),
        ),
        HelpSection("Presets", (("s", "save preset (then 1-9)"), ("1-9", "recall preset slot"))),
        HelpSection("Actions", (("R", "sync all"),)),
        GLOBAL_SECTION,
    ),
    View.MR_DETAIL: (
        HelpSection(
            "Navigation",
            (
                ("j / ↓", "down"),
                ("k / ↑", "up"),
                ("g", "top"),
                ("G", "bottom"),
                ("l / enter / →", "open thread"),
                ("h / b / ← / esc", "back to MR list"),
            ),
        ),
        HelpSection("Actions", (("w", "open in web browser"), ("R", "sync this MR"))),
        GLOBAL_SECTION,
    ),
    View.THREAD: (
        HelpSection("Scroll", (("j / ↓", "scroll down"), ("k / ↑", "scroll up"))),
        HelpSection(
            "Thread",
            (
                ("n", "next thread"),
                ("p", "previous thread"),
                ("h / b / ← / esc", "back to MR detail"),
            ),
        ),
        HelpSection("Actions", (("c", "send thread to claude"), ("w", "open comment in web"))),
        GLOBAL_SECTION,
    ),
}

_NAMES = {View.MR_LIST: "MR list", View.MR_DETAIL: "MR detail", View.THREAD: "Thread"}


def help_sections_for_view(view: View | int) -> list[HelpSection]:
    """The shortcut sections relevant to ``view``; only the global one if unknown."""
    try:
        return list(_SECTIONS[View(view)])
    except ValueError:
        return [GLOBAL_SECTION]


def view_name(view: View | int) -> str:
    """A readable label for ``view``, or ``""`` if unknown."""
    try:
        return _NAMES[View(view)]
    except ValueError:
        return ""


def render_help(view: View | int) -> str:
    """The body of the help popup, without its border."""
    sections = help_sections_for_view(view)
    key_w = max((visible_width(keys) for sec in sections for keys, _ in sec.rows), default=0)

    parts = [TITLE.render("Keyboard shortcuts"), HELP_HINT.render(" — " + view_name(view)), "\n"]
    for sec in sections:
        parts += ["\n", SELECTED.render(sec.title), "\n"]
        for keys, desc in sec.rows:
            pad = max(key_w - visible_width(keys), 0)
            parts += ["  ", HELP_KEY.render(keys), " " * pad, "  ", HELP_DESC.render(desc), "\n"]
    parts += ["\n", HELP_HINT.render("press esc or q to close")]
    return "".join(parts)


def _boxed(body: str, pad_y: int = 1, pad_x: int = 2) -> str:
    lines = body.split("\n")
    inner = max((visible_width(line) for line in lines), default=0)
    blank = " " * (inner + 2 * pad_x)
    rows = [blank] * pad_y
    rows += [
        " " * pad_x + line + " " * (inner - visible_width(line) + pad_x) for line in lines
    ]
    rows += [blank] * pad_y
    border = Style(foreground=ACTIVE_COLOR)
    b = ROUNDED
    width = inner + 2 * pad_x
    out = [border.render(b.top_left + b.top * width + b.top_right)]
    out += [border.render(b.left) + row + border.render(b.right) for row in rows]
    out.append(border.render(b.bottom_left + b.bottom * width + b.bottom_right))
    return "\n".join(out)


def overlay_help(view: View | int, width: int, height: int) -> str:
    """The help popup for ``view`` centred in a ``width`` by ``height`` screen."""
    return place_center(max(width, 4), max(height, 4), _boxed(render_help(view)))