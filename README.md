# mrdeck

mrdeck keeps a local copy of the open merge requests in your GitLab repositories
up to date. It tells you what changed between syncs. It also renders the pieces
of a terminal review screen as plain strings.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Syncing (`mrdeck.engine`)

`SyncEngine(database, client, snippet=None, out=None)` pulls data through a
GitLab client and writes it to your database.

`sync_repo(repo)` syncs one repository:

- A repository whose path does not exist on disk is skipped.
- Open merge requests are listed.
- If the repository has no project id yet, it takes the one from the first
  merge request.
- Merge requests that are no longer open are deleted.
- The remaining merge requests are fetched and stored. Up to four are handled
  at a time. For each one the engine stores:
  - pipeline status
  - approval
  - labels
  - reviewers: the detail reviewers, which carry review states, are preferred
    over the listed ones (`merge_reviewers`).
  - its discussions

When the discussions are stored:

- System notes are skipped.
- Diff notes keep their file path and line numbers.
- Comments that disappeared are removed.
- If you pass a `snippet` callable `(content, line, context)`, the file is
  fetched at the note's head commit, once per file and commit. The excerpt the
  callable returns is stored as the comment's `diff_hunk`.

`sync_all()` syncs every repository and writes `Syncing n/m name` progress lines
to `out` (standard output by default). A failure in one repository does not stop
the others; the first failure is raised once all have been tried. Failures of
the engine's own steps are raised as `SyncError`.

`sync_all_with_writer(writer)` does the same, with progress sent to `writer`.

`sync_mr(repo, mr_iid)` re-syncs the discussions of one stored merge request.

### What you supply

The engine needs two objects from you.

`database` must provide:

- `list_repos`
- `list_mrs(MRFilter)`
- `list_comments`
- `get_mr_reviewers`
- `update_repo_project_id`
- `delete_stale_mrs`
- `upsert_mr` (which sets the stored merge request's `id`)
- `set_mr_labels`
- `set_mr_reviewers`
- `upsert_comment`
- `delete_stale_comments`
- `update_repo_sync_time`

`client` must provide:

- `list_mrs`
- `list_discussions`
- `get_mr_detail`
- `get_file_content`

The records passed between them are the dataclasses in `mrdeck.types`, such as
`Repo`, `MergeRequest`, `Comment`, `MRListItem` and `Discussion`.

## Change notifications (`mrdeck.watch`)

```python
from mrdeck.engine import SyncEngine
from mrdeck.types import Notifications

engine = SyncEngine(database, client)
engine.sync_all_with_notifications("alice", Notifications(), notifier)
```

`sync_all_with_notifications` works in three steps:

1. It snapshots the store (`snapshot_all`) before and after `sync_all`.
2. It compares the two snapshots with `diff_snapshots`.
3. It calls `notifier.notify(title, message, url)` for each resulting `Update`.

Each trigger can be switched off in `Notifications`:

- `new_comment`: new notes on your own merge requests
- `pipeline_failed`: your pipeline turned `failed` or `canceled`
- `approved`: your merge request was approved
- `new_review_request`: you were added as a reviewer
- `rereview_request`: your review state went back to `unreviewed`
- `mr_merged`: your merge request left the open list and the client reports it
  merged

Without a notifier or a username, `sync_all_with_notifications` is plain
`sync_all`.

## Filters and presets (`mrdeck.filters`)

`FilterState` holds the repo, author (optionally negated), reviewer, label,
draft, accepted and unread-only filters, together with the options each may
take.

- `apply_selection(group, value)` sets a filter from a picked option label.
- `cycle(group, delta)` steps a filter through its options.
- `autocomplete_for(group)` returns an `Autocomplete` drop-down with the current
  option selected.
- `to_config()` and `FilterState.from_config(values)` convert the filters to
  and from string key/value pairs.
- `mr_filter(repos)` builds the `MRFilter` query.

A key/value store with `get_config`, `set_config` and `get_config_by_prefix`
backs these functions:

- `save_favorite(store, slot)` keeps a preset in one of the slots 1–9.
- `recall_favorite(store, slot)` restores a preset.
- `toggle_unread(store)` switches the unread-only filter.

`render_filter_bar` draws the row of filter boxes.

## Rendering

Everything that draws returns strings with ANSI colour codes.

- `mrdeck.styles`:
  - `Style` and the palette constants
  - `visible_width`
  - `render_selected_row`
  - `render_panel`
  - `place_center`
- `mrdeck.keys`: `KeyBinding`, the `KeyMap` of bindings, and the default map
  `KEYS`.
- `mrdeck.autocomplete`: `Autocomplete`, a searchable drop-down. It handles key
  names with `handle_key` and draws with `render`.
- `mrdeck.help`: per-view shortcut sections for the `View` screens. It provides
  `render_help` and `overlay_help`.
- `mrdeck.bars`:
  - `filter_box_lines`
  - `approval_indicator`
  - `pipeline_indicator`
  - `render_mr_row`
- `mrdeck.text`:
  - `truncate`
  - `initials`
  - `format_reviewer_cell`
  - `word_wrap`
  - `time_ago`
  - `format_diff_hunk`

```python
from mrdeck.styles import render_panel

print(render_panel("lab", "hello\n", "q: quit", 40, 6))
```

## What it does not do

- mrdeck has no command and no interactive application. It does not run an
  event loop, read the keyboard or switch between screens. The merge request
  detail and thread screens are not provided; only the building blocks above
  are.
- It does not include a database or a GitLab client. Both are supplied by you.