"""A searchable drop-down for picking one of a list of options."""

from __future__ import annotations

from mrdeck.styles import DIM, SELECTED, render_selected_row


class Autocomplete:
    """Options filtered by a typed, case-insensitive substring."""

    def __init__(self, options: list[str], current: str) -> None:
        self.options = list(options)
        self.filtered = list(options)
        self.input = ""
        self.cursor = next((i for i, opt in enumerate(self.options) if opt == current), 0)

    def _apply_filter(self) -> None:
        if not self.input:
            self.filtered = list(self.options)
            self.cursor = 0
            return
        needle = self.input.lower()
        self.filtered = [opt for opt in self.options if needle in opt.lower()]
        if self.cursor >= len(self.filtered):
            self.cursor = max(len(self.filtered) - 1, 0)

    def selected(self) -> str:
        """The option under the cursor, or ``""`` when nothing matches."""
        if 0 <= self.cursor < len(self.filtered):
            return self.filtered[self.cursor]
        return ""

    def handle_key(self, key: str) -> tuple[bool, bool]:
        """Handle one key name and return ``(done, cancelled)``."""
        if key == "esc":
            return True, True
        if key == "enter":
            return bool(self.filtered), False
        if key in ("up", "ctrl+p"):
            if self.cursor > 0:
                self.cursor -= 1
        elif key in ("down", "ctrl+n"):
            if self.cursor < len(self.filtered) - 1:
                self.cursor += 1
        elif key == "backspace":
            if self.input:
                self.input = self.input[:-1]
                self._apply_filter()
        elif len(key) == 1 and ord(key) >= 32:
            self.input += key
            self._apply_filter()
        return False, False

    def render(self, width: int, max_rows: int) -> str:
        """Draw the input line and as many options as fit in ``max_rows``."""
        out = [SELECTED.render("> " + self.input + "█")]
        visible = max(max_rows - 1, 1)
        offset = self.cursor - visible + 1 if self.cursor >= visible else 0
        for i, opt in enumerate(self.filtered[offset : offset + visible], start=offset):
            if i == self.cursor:
                out.append(render_selected_row("  " + opt, width))
            else:
                out.append(DIM.render("  " + opt))
        if not self.filtered:
            out.append(DIM.render("  No matches"))
        return "".join(line + "\n" for line in out)