"""Terminal styles and the panel layout helpers shared by all views."""

from __future__ import annotations

import re
from dataclasses import dataclass

from wcwidth import wcswidth, wcwidth

RESET = "\x1b[0m"
SELECTED_BG = "\x1b[48;5;24m"
_BOLD = "\x1b[1m"
_ANSI = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


@dataclass(frozen=True)
class Style:
    """Foreground/background colours from the 256-colour palette plus attributes."""

    foreground: str | None = None
    background: str | None = None
    bold: bool = False
    italic: bool = False

    def _sequence(self) -> str:
        codes = []
        if self.bold:
            codes.append("1")
        if self.italic:
            codes.append("3")
        if self.foreground:
            codes.append(f"38;5;{self.foreground}")
        if self.background:
            codes.append(f"48;5;{self.background}")
        return f"\x1b[{';'.join(codes)}m" if codes else ""

    def render(self, text: str) -> str:
        """Wrap every non-empty line of ``text`` in this style's escape codes."""
        start = self._sequence()
        if not start or not text:
            return text
        return "\n".join(start + line + RESET if line else line for line in text.split("\n"))


@dataclass(frozen=True)
class Border:
    """The characters that draw a box."""

    top_left: str
    top: str
    top_right: str
    left: str
    right: str
    bottom_left: str
    bottom: str
    bottom_right: str


ROUNDED = Border("╭", "─", "╮", "│", "│", "╰", "─", "╯")

BORDER_COLOR = "246"
ACTIVE_COLOR = "170"

TITLE = Style(foreground="205", bold=True)
SELECTED = Style(foreground="170", bold=True)
SELECTED_ROW = Style(background="24", bold=True)
DIM = Style(foreground="245")
HELP = Style(foreground="248")
PIPELINE_SUCCESS = Style(foreground="42")
PIPELINE_FAILED = Style(foreground="196")
PIPELINE_RUNNING = Style(foreground="214")
APPROVAL_APPROVED = Style(foreground="170")
UNRESOLVED = Style(foreground="214")
RESOLVED = Style(foreground="42")
UNREAD = Style(foreground="39")
PREVIEW = Style(foreground="252")
DIFF_ADD = Style(foreground="42")
DIFF_DEL = Style(foreground="196")
DIFF_CONTEXT = Style(foreground="245")


def visible_width(text: str) -> int:
    """Terminal columns taken by ``text``, ignoring escape sequences."""
    plain = _ANSI.sub("", text)
    width = wcswidth(plain)
    if width >= 0:
        return width
    return sum(max(wcwidth(ch), 0) for ch in plain)


def render_selected_row(row: str, inner_width: int) -> str:
    """Highlight ``row`` with the selection background across the full width.

    The background is re-applied after every reset emitted by nested styles.
    """
    pad = inner_width - visible_width(row)
    if pad > 0:
        row += " " * pad
    row = row.replace(RESET, RESET + SELECTED_BG)
    return SELECTED_BG + _BOLD + row + RESET


def render_panel(title: str, content: str, help_text: str, width: int, height: int) -> str:
    """Draw a bordered panel exactly ``width`` by ``height``, help bar included."""
    width = max(width, 4)
    height = max(height, 4)
    inner_w = width - 2
    inner_h = height - 2
    if help_text:
        inner_h -= 1
    inner_h = max(inner_h, 1)

    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    lines = (lines + [""] * inner_h)[:inner_h]

    b = ROUNDED
    border = Style(foreground=BORDER_COLOR)
    if title:
        title_str = f" {title} "
        remaining = max(inner_w - 1 - visible_width(title_str), 0)
        top = (
            border.render(b.top_left + b.top)
            + title_str
            + border.render(b.top * remaining + b.top_right)
        )
    else:
        top = border.render(b.top_left + b.top * inner_w + b.top_right)

    out = [top]
    for line in lines:
        pad = max(inner_w - visible_width(line), 0)
        out.append(border.render(b.left) + line + " " * pad + border.render(b.right))
    out.append(border.render(b.bottom_left + b.bottom * inner_w + b.bottom_right))
    if help_text:
        out.append(HELP.render(" " + help_text))
    return "\n".join(out)


def _near_half(gap: int) -> int:
    split = int(gap * 0.5 + 0.5)
    return gap - split


def place_center(width: int, height: int, block: str) -> str:
    """Centre ``block`` in a ``width`` by ``height`` area filled with spaces."""
    lines = block.split("\n")
    block_w = max((visible_width(line) for line in lines), default=0)

    gap = width - block_w
    if gap > 0:
        left = _near_half(gap)
        right = gap - left
        lines = [
            " " * left + line + " " * (right + block_w - visible_width(line)) for line in lines
        ]
    full_w = max(width, block_w)

    gap = height - len(lines)
    if gap > 0:
        top = _near_half(gap)
        bottom = gap - top
        blank = " " * full_w
        lines = [blank] * top + lines + [blank] * bottom
    return "\n".join(lines)