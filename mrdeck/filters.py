"""Filter state of the merge request list, its presets and its filter bar."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, Mapping

from mrdeck.autocomplete import Autocomplete
from mrdeck.bars import filter_box_lines
from mrdeck.styles import UNREAD
from mrdeck.types import MRFilter, Repo

REVIEWER_UNASSIGNED_LABEL = "— Unassigned —"
REVIEWER_ALL_LABEL = "All reviewers"
REVIEWER_UNASSIGNED = "__unassigned__"

ALL_REPOS = "All repos"
ALL_AUTHORS = "All authors"
NO_LABEL_FILTER = "No filter"
ALL = "All"

DRAFT_LABELS = {"drafts": "◇ Draft", "ready": "◆ Ready"}
ACCEPTED_LABELS = {"accepted": "✓ Accepted", "not_accepted": "— Not accepted"}

_DRAFT_STATES = ("", "drafts", "ready")
_ACCEPTED_STATES = ("", "accepted", "not_accepted")

FILTER_CONFIG_KEYS = (
    "active_repo_filter",
    "active_author_filter",
    "active_author_negate",
    "active_reviewer_filter",
    "active_label_filters",
    "active_draft_filter",
    "active_accepted_filter",
    "active_unread_filter",
)
UNREAD_KEY = "active_unread_filter"
_ACTIVE_PREFIX = "active_"
_NARROW_BOX_WIDTH = 14


class FilterGroup(IntEnum):
    """Which filter of the list is being edited."""

    REPO = 0
    AUTHOR = 1
    REVIEWER = 2
    LABELS = 3
    DRAFT = 4
    ACCEPTED = 5


def _get(store: Any, key: str) -> str:
    try:
        return store.get_config(key) or ""
    except Exception:
        return ""


def _cycle_state(states: tuple[str, ...], current: str, delta: int) -> str:
    idx = states.index(current) if current in states else 0
    return states[(idx + delta) % len(states)]


@dataclass
class FilterState:
    """The selected filters and the options they may take.

    ``reviewer`` is ``""`` for no filter, :data:`REVIEWER_UNASSIGNED` for
    merge requests without reviewers, otherwise a username. ``draft`` is one
    of ``""``, ``"drafts"``, ``"ready"``; ``accepted`` one of ``""``,
    ``"accepted"``, ``"not_accepted"``.
    """

    repo: str = ""
    author: str = ""
    author_negate: bool = False
    reviewer: str = ""
    label: str = ""
    draft: str = ""
    accepted: str = ""
    unread_only: bool = False
    repo_options: list[str] = field(default_factory=list)
    author_options: list[str] = field(default_factory=list)
    reviewer_options: list[str] = field(default_factory=list)
    label_options: list[str] = field(default_factory=list)

    def apply_selection(self, group: FilterGroup, value: str) -> None:
        """Set the filter of ``group`` from an option label picked by the user."""
        if group == FilterGroup.REPO:
            self.repo = "" if value == ALL_REPOS else value
        elif group == FilterGroup.AUTHOR:
            if value == ALL_AUTHORS:
                self.author = ""
                self.author_negate = False
            else:
                self.author = value
        elif group == FilterGroup.REVIEWER:
            if value == REVIEWER_ALL_LABEL:
                self.reviewer = ""
            elif value == REVIEWER_UNASSIGNED_LABEL:
                self.reviewer = REVIEWER_UNASSIGNED
            else:
                self.reviewer = value
        elif group == FilterGroup.LABELS:
            self.label = "" if value == NO_LABEL_FILTER else value
        elif group == FilterGroup.DRAFT:
            self.draft = {v: k for k, v in DRAFT_LABELS.items()}.get(value, "")
        elif group == FilterGroup.ACCEPTED:
            self.accepted = {v: k for k, v in ACCEPTED_LABELS.items()}.get(value, "")

    def cycle(self, group: FilterGroup, delta: int) -> None:
        """Step the filter of ``group`` by ``delta``, wrapping through "all".

        Reviewer and label filters do not cycle.
        """
        if group == FilterGroup.DRAFT:
            self.draft = _cycle_state(_DRAFT_STATES, self.draft, delta)
            return
        if group == FilterGroup.ACCEPTED:
            self.accepted = _cycle_state(_ACCEPTED_STATES, self.accepted, delta)
            return
        if group == FilterGroup.REPO:
            options, current, all_label = self.repo_options, self.repo, ALL_REPOS
        elif group == FilterGroup.AUTHOR:
            options, current, all_label = self.author_options, self.author, ALL_AUTHORS
        else:
            return

        full = ["", *options]
        idx = full.index(current) if current in full else 0
        idx += delta
        if idx < 0:
            idx = len(full) - 1
        elif idx >= len(full):
            idx = 0
        value = full[idx]
        if not value:
            value = all_label
            if group == FilterGroup.AUTHOR:
                self.author_negate = False
        self.apply_selection(group, value)

    def autocomplete_for(self, group: FilterGroup) -> Autocomplete:
        """A drop-down of the options of ``group`` with the current one selected."""
        if group == FilterGroup.REPO:
            options = [ALL_REPOS, *self.repo_options]
            current = self.repo or ALL_REPOS
        elif group == FilterGroup.AUTHOR:
            options = [ALL_AUTHORS, *self.author_options]
            current = self.author or ALL_AUTHORS
        elif group == FilterGroup.REVIEWER:
            options = [REVIEWER_ALL_LABEL, REVIEWER_UNASSIGNED_LABEL, *self.reviewer_options]
            if not self.reviewer:
                current = REVIEWER_ALL_LABEL
            elif self.reviewer == REVIEWER_UNASSIGNED:
                current = REVIEWER_UNASSIGNED_LABEL
            else:
                current = self.reviewer
        elif group == FilterGroup.LABELS:
            options = [NO_LABEL_FILTER, *self.label_options]
            current = self.label or NO_LABEL_FILTER
        elif group == FilterGroup.DRAFT:
            options = [ALL, *DRAFT_LABELS.values()]
            current = DRAFT_LABELS.get(self.draft, ALL)
        else:
            options = [ALL, *ACCEPTED_LABELS.values()]
            current = ACCEPTED_LABELS.get(self.accepted, ALL)
        return Autocomplete(options, current)

    def to_config(self) -> dict[str, str]:
        """The persisted form of the selections; the unread toggle is kept apart."""
        return {
            "active_repo_filter": self.repo,
            "active_author_filter": self.author,
            "active_author_negate": "true" if self.author_negate else "",
            "active_reviewer_filter": self.reviewer,
            "active_label_filters": self.label,
            "active_draft_filter": self.draft,
            "active_accepted_filter": self.accepted,
        }

    @classmethod
    def from_config(cls, values: Mapping[str, str]) -> FilterState:
        """Build the selections from stored config values; missing keys mean no filter."""
        author = values.get("active_author_filter", "") or ""
        return cls(
            repo=values.get("active_repo_filter", "") or "",
            author=author,
            author_negate=bool(author) and values.get("active_author_negate") == "true",
            reviewer=values.get("active_reviewer_filter", "") or "",
            label=values.get("active_label_filters", "") or "",
            draft=values.get("active_draft_filter", "") or "",
            accepted=values.get("active_accepted_filter", "") or "",
            unread_only=values.get(UNREAD_KEY) == "true",
        )

    def mr_filter(self, repos: Iterable[Repo]) -> MRFilter:
        """The store query for these selections, resolving the repo by name."""
        result = MRFilter()
        if self.draft == "drafts":
            result.draft = True
        elif self.draft == "ready":
            result.draft = False
        if self.accepted == "accepted":
            result.approved = True
        elif self.accepted == "not_accepted":
            result.approved = False
        if self.repo:
            result.repo_id = next((r.id for r in repos if r.name == self.repo), None)
        if self.author:
            result.author = self.author
            result.author_negate = self.author_negate
        if self.reviewer == REVIEWER_UNASSIGNED:
            result.reviewer = ""
        elif self.reviewer:
            result.reviewer = self.reviewer
        if self.label:
            result.labels = [p.strip() for p in self.label.split(",") if p.strip()]
        return result


def _check_slot(slot: int) -> str:
    if not 1 <= slot <= 9:
        raise ValueError(f"preset slot must be 1-9, got {slot}")
    return f"favorite_{slot}_"


def save_favorite(store: Any, slot: int) -> str:
    """Copy the active filter config to preset ``slot`` and return a status line."""
    prefix = _check_slot(slot)
    for key in FILTER_CONFIG_KEYS:
        store.set_config(prefix + key.removeprefix(_ACTIVE_PREFIX), _get(store, key))
    return f"Favorite {slot} saved"


def recall_favorite(store: Any, slot: int) -> bool:
    """Restore the active filter config from preset ``slot``.

    Returns ``False``, changing nothing, when the slot is empty.
    """
    prefix = _check_slot(slot)
    try:
        saved = store.get_config_by_prefix(prefix)
    except Exception:
        saved = {}
    if not saved:
        return False
    for key in FILTER_CONFIG_KEYS:
        store.set_config(key, saved.get(prefix + key.removeprefix(_ACTIVE_PREFIX), ""))
    return True


def toggle_unread(store: Any) -> bool:
    """Flip the unread-only filter and return whether it is now on."""
    enabled = _get(store, UNREAD_KEY) != "true"
    store.set_config(UNREAD_KEY, "true" if enabled else "")
    return enabled


def render_filter_bar(
    state: FilterState,
    inner_width: int,
    active_filter: FilterGroup | None,
    unread_only: bool,
) -> str:
    """The three lines of filter boxes; ``active_filter`` is the one being edited."""
    remaining = inner_width - _NARROW_BOX_WIDTH * 2 - 5
    box_width = max(remaining // 4, 14)

    if not state.reviewer:
        reviewer_val = ALL
    elif state.reviewer == REVIEWER_UNASSIGNED:
        reviewer_val = "— Unassigned"
    else:
        reviewer_val = state.reviewer

    boxes = [
        filter_box_lines("Repo", state.repo or ALL_REPOS, "r", box_width,
                         active_filter == FilterGroup.REPO),
        filter_box_lines("!Author" if state.author_negate else "Author",
                         state.author or ALL_AUTHORS, "a", box_width,
                         active_filter == FilterGroup.AUTHOR),
        filter_box_lines("Reviewer", reviewer_val, "v", box_width,
                         active_filter == FilterGroup.REVIEWER),
        filter_box_lines("Labels", state.label or NO_LABEL_FILTER, "L", box_width,
                         active_filter == FilterGroup.LABELS),
        filter_box_lines("Draft", DRAFT_LABELS.get(state.draft, ALL), "d",
                         _NARROW_BOX_WIDTH, active_filter == FilterGroup.DRAFT),
        filter_box_lines("Acc.", ACCEPTED_LABELS.get(state.accepted, ALL), "c",
                         _NARROW_BOX_WIDTH, active_filter == FilterGroup.ACCEPTED),
    ]
    unread_indicator = " " + UNREAD.render("● unread") if unread_only else ""

    out = []
    for row in range(3):
        line = " ".join(box[row] for box in boxes)
        if row == 1:
            line += unread_indicator
        out.append(line + "\n")
    return "".join(out)