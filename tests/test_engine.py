import io
import threading
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from mrdeck.engine import SyncEngine, SyncError, merge_reviewers
from mrdeck.types import (
    Discussion,
    MRDetail,
    MRFilter,
    MRListItem,
    Note,
    Notifications,
    Position,
    Repo,
    Reviewer,
    StoredReviewer,
)


class FakeDatabase:
    def __init__(self):
        self._lock = threading.Lock()
        self.repos = {}
        self.mrs = {}
        self.labels = {}
        self.reviewers = {}
        self.comments = {}
        self.sync_times = {}
        self._next_repo = 1
        self._next_mr = 1

    def add_repo(self, path, gitlab_url, name):
        with self._lock:
            repo = Repo(id=self._next_repo, path=path, gitlab_url=gitlab_url, name=name)
            self._next_repo += 1
            self.repos[repo.id] = repo
            return replace(repo)

    def list_repos(self):
        return [replace(r) for r in self.repos.values()]

    def update_repo_project_id(self, repo_id, project_id):
        self.repos[repo_id].project_id = project_id

    def update_repo_sync_time(self, repo_id):
        self.sync_times[repo_id] = datetime.now()

    def delete_stale_mrs(self, repo_id, keep_iids):
        with self._lock:
            for mr_id, mr in list(self.mrs.items()):
                if mr.repo_id == repo_id and mr.iid not in keep_iids:
                    del self.mrs[mr_id]
                    for key in [k for k in self.comments if k[0] == mr_id]:
                        del self.comments[key]

    def upsert_mr(self, mr):
        with self._lock:
            for existing in self.mrs.values():
                if existing.repo_id == mr.repo_id and existing.iid == mr.iid:
                    mr.id = existing.id
                    break
            else:
                mr.id = self._next_mr
                self._next_mr += 1
            self.mrs[mr.id] = replace(mr)

    def set_mr_labels(self, mr_id, labels):
        self.labels[mr_id] = list(labels)

    def get_mr_labels(self, mr_id):
        return list(self.labels.get(mr_id, []))

    def set_mr_reviewers(self, mr_id, reviewers):
        self.reviewers[mr_id] = list(reviewers)

    def get_mr_reviewers(self, mr_id):
        return list(self.reviewers.get(mr_id, []))

    def list_mrs(self, mr_filter):
        out = [
            replace(mr)
            for mr in self.mrs.values()
            if mr_filter.repo_id is None or mr.repo_id == mr_filter.repo_id
        ]
        return sorted(out, key=lambda m: m.iid)

    def upsert_comment(self, comment):
        with self._lock:
            self.comments[(comment.mr_id, comment.note_id)] = replace(comment)

    def delete_stale_comments(self, mr_id, keep_note_ids):
        with self._lock:
            for key in list(self.comments):
                if key[0] == mr_id and key[1] not in keep_note_ids:
                    del self.comments[key]

    def list_comments(self, mr_id):
        found = [c for (m, _), c in self.comments.items() if m == mr_id]
        return sorted(found, key=lambda c: c.note_id)


class MockGitLab:
    def __init__(self, mrs=None, discussions=None, pipelines=None, approvals=None,
                 file_contents=None, states=None, detail_reviewers=None):
        self.mrs = mrs or []
        self.discussions = discussions or {}
        self.pipelines = pipelines or {}
        self.approvals = approvals or {}
        self.file_contents = file_contents or {}
        self.states = states or {}
        self.detail_reviewers = detail_reviewers or {}
        self.list_calls = 0
        self.file_calls = 0
        self.fail_list = False

    def list_mrs(self, repo_url):
        self.list_calls += 1
        if self.fail_list:
            raise RuntimeError("boom")
        return list(self.mrs)

    def list_discussions(self, repo_url, project_id, mr_iid):
        return self.discussions.get(mr_iid, [])

    def get_mr_detail(self, repo_url, project_id, mr_iid):
        return MRDetail(
            state=self.states.get(mr_iid, ""),
            pipeline_status=self.pipelines.get(mr_iid, ""),
            approved=self.approvals.get(mr_iid, False),
            reviewers=self.detail_reviewers.get(mr_iid, []),
        )

    def get_file_content(self, repo_url, project_id, file_path, ref):
        self.file_calls += 1
        key = f"{file_path}@{ref}"
        if key in self.file_contents:
            return self.file_contents[key]
        raise FileNotFoundError("file not found")


class CaptureNotifier:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def notify(self, title, message, url):
        self.calls.append((title, message, url))
        if self.fail:
            raise RuntimeError("notify failed")


def fake_snippet(content, line, context):
    lines = content.split("\n")
    start = max(1, line - context)
    end = min(len(lines), line + context)
    return "".join(f"{n}\t{lines[n - 1]}\n" for n in range(start, end + 1))


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def repo(database, tmp_path):
    created = database.add_repo(str(tmp_path), "https://gitlab.example.com/owner/repo", "testrepo")
    database.update_repo_project_id(created.id, 42)
    created.project_id = 42
    return created


def make_engine(database, client, snippet=fake_snippet):
    return SyncEngine(database, client, snippet, io.StringIO())


def mr_item(iid, title, author, **kwargs):
    return MRListItem(
        id=iid, iid=iid, project_id=42, title=title, state="opened",
        updated_at=datetime.now() - timedelta(hours=2), author=author, **kwargs
    )


def test_sync_repo_creates_mrs(database, repo):
    mock = MockGitLab(
        mrs=[
            mr_item(
                1, "My first MR", "alice",
                source_branch="feature/x", target_branch="main",
                web_url="https://gitlab.example.com/owner/repo/-/merge_requests/1",
                labels=["bug", "review"],
            )
        ],
        discussions={
            1: [
                Discussion(
                    id="abc123",
                    notes=[
                        Note(
                            id=101, type="DiffNote", body="Please fix this", author="bob",
                            created_at=datetime.now() - timedelta(minutes=30),
                            resolvable=True,
                            position=Position(new_path="main.go", new_line=10, head_sha="abc123def"),
                        )
                    ],
                )
            ]
        },
        pipelines={1: "success"},
        file_contents={
            "main.go@abc123def": "package main\n\nimport \"fmt\"\n\nfunc init() {\n}\n\n"
            "func hello() {\n}\n\nfunc main() {\n\tfmt.Println(\"hello\")\n}\n",
        },
    )
    make_engine(database, mock).sync_repo(repo)

    mrs = database.list_mrs(MRFilter(repo_id=repo.id))
    assert len(mrs) == 1
    mr = mrs[0]
    assert mr.iid == 1
    assert mr.title == "My first MR"
    assert mr.author == "alice"
    assert mr.pipeline_status == "success"
    assert len(database.get_mr_labels(mr.id)) == 2

    comments = database.list_comments(mr.id)
    assert len(comments) == 1
    c = comments[0]
    assert c.note_id == 101
    assert c.author == "bob"
    assert c.body == "Please fix this"
    assert c.file_path == "main.go"
    assert c.new_line == 10
    assert c.resolved is False
    assert c.diff_hunk != ""
    assert "10\tfunc main() {" in c.diff_hunk


def test_sync_repo_deletes_stale_mrs(database, repo):
    mr1 = mr_item(1, "MR one", "alice")
    mr2 = mr_item(2, "MR two", "bob")
    mock = MockGitLab(mrs=[mr1, mr2])
    engine = make_engine(database, mock)

    engine.sync_repo(repo)
    assert len(database.list_mrs(MRFilter(repo_id=repo.id))) == 2

    mock.mrs = [mr1]
    engine.sync_repo(repo)
    mrs = database.list_mrs(MRFilter(repo_id=repo.id))
    assert [m.iid for m in mrs] == [1]


def test_sync_repo_skips_missing_path(database):
    ghost = database.add_repo("/nonexistent/path/that/does/not/exist",
                              "https://gitlab.example.com/x/y", "ghost")
    mock = MockGitLab()
    make_engine(database, mock).sync_repo(ghost)
    assert mock.list_calls == 0
    assert ghost.id not in database.sync_times


def test_sync_repo_existing_path_records_sync_time(database, repo):
    make_engine(database, MockGitLab()).sync_repo(repo)
    assert repo.id in database.sync_times


def test_sync_repo_system_notes_filtered(database, repo):
    mock = MockGitLab(
        mrs=[mr_item(1, "MR with system notes", "alice")],
        discussions={
            1: [
                Discussion(
                    id="sys1",
                    notes=[
                        Note(id=200, body="assigned to @alice", author="gitlab-bot",
                             created_at=datetime.now(), system=True),
                        Note(id=201, body="Real comment", author="carol",
                             created_at=datetime.now()),
                    ],
                )
            ]
        },
    )
    make_engine(database, mock).sync_repo(repo)
    mrs = database.list_mrs(MRFilter(repo_id=repo.id))
    comments = database.list_comments(mrs[0].id)
    assert [c.note_id for c in comments] == [201]


def test_sync_repo_sets_project_id_from_first_mr(database, tmp_path):
    fresh = database.add_repo(str(tmp_path), "https://gitlab.example.com/a/b", "fresh")
    item = mr_item(3, "x", "alice")
    item.project_id = 77
    make_engine(database, MockGitLab(mrs=[item])).sync_repo(fresh)
    assert fresh.project_id == 77
    assert database.repos[fresh.id].project_id == 77


def test_file_content_fetched_once_per_file(database, repo):
    notes = [
        Note(id=n, body="b", author="bob",
             position=Position(new_path="a.py", new_line=2, head_sha="deadbeefcafe"))
        for n in (1, 2)
    ]
    mock = MockGitLab(
        mrs=[mr_item(1, "t", "alice")],
        discussions={1: [Discussion(id="d", notes=notes)]},
        file_contents={"a.py@deadbeefcafe": "x\ny\nz\n"},
    )
    make_engine(database, mock).sync_repo(repo)
    assert mock.file_calls == 1


def test_missing_file_leaves_empty_hunk(database, repo):
    note = Note(id=5, body="b", author="bob",
                position=Position(old_path="gone.py", old_line=4, head_sha="0123456789ab"))
    mock = MockGitLab(mrs=[mr_item(1, "t", "alice")],
                      discussions={1: [Discussion(id="d", notes=[note])]})
    make_engine(database, mock).sync_repo(repo)
    comment = database.list_comments(database.list_mrs(MRFilter())[0].id)[0]
    assert comment.file_path == "gone.py"
    assert comment.old_line == 4
    assert comment.diff_hunk == ""


def test_sync_mr_unknown_iid_raises(database, repo):
    with pytest.raises(SyncError):
        make_engine(database, MockGitLab()).sync_mr(repo, 99)


def test_sync_mr_refreshes_discussions(database, repo):
    mock = MockGitLab(mrs=[mr_item(1, "t", "alice")])
    engine = make_engine(database, mock)
    engine.sync_repo(repo)
    mock.discussions = {1: [Discussion(id="d", notes=[Note(id=9, body="hi", author="bob")])]}
    engine.sync_mr(repo, 1)
    mr = database.list_mrs(MRFilter())[0]
    assert [c.body for c in database.list_comments(mr.id)] == ["hi"]


def test_sync_all_reports_progress(database, repo):
    out = io.StringIO()
    engine = make_engine(database, MockGitLab(mrs=[mr_item(1, "Title here", "alice")]))
    engine.sync_all_with_writer(out)
    text = out.getvalue()
    assert "Syncing 1/1 testrepo\n" in text
    assert "  MR !1 (1/1): Title here\n" in text


def test_sync_all_raises_first_error(database, repo):
    mock = MockGitLab()
    mock.fail_list = True
    with pytest.raises(SyncError):
        make_engine(database, mock).sync_all()
    assert mock.list_calls == 1


def test_merge_reviewers_prefers_detail():
    listed = [Reviewer(username="a")]
    detail = [Reviewer(username="b", review_state="reviewed")]
    assert merge_reviewers(listed, detail) == [StoredReviewer(username="b", state="reviewed")]


def test_merge_reviewers_falls_back_to_list():
    listed = [Reviewer(username="a", review_state="")]
    assert merge_reviewers(listed, []) == [StoredReviewer(username="a", state="")]


def test_sync_all_with_notifications_end_to_end(database, repo):
    mock = MockGitLab(mrs=[mr_item(1, "My MR", "alice", web_url="https://example.com/mr/1")])
    engine = make_engine(database, mock)
    notifier = CaptureNotifier()
    cfg = Notifications()

    engine.sync_all_with_notifications("alice", cfg, notifier)
    assert notifier.calls == []

    mock.discussions = {
        1: [Discussion(id="d1", notes=[Note(id=101, body="please fix", author="bob",
                                            created_at=datetime.now())])]
    }
    engine.sync_all_with_notifications("alice", cfg, notifier)
    assert len(notifier.calls) == 1
    assert notifier.calls[0][2] == "https://example.com/mr/1"


def test_notifications_report_merged_mr(database, repo):
    mock = MockGitLab(mrs=[mr_item(1, "Done", "alice", web_url="https://example.com/mr/1")],
                      states={1: "merged"})
    engine = make_engine(database, mock)
    notifier = CaptureNotifier()
    engine.sync_all_with_notifications("alice", Notifications(), notifier)
    mock.mrs = []
    engine.sync_all_with_notifications("alice", Notifications(), notifier)
    assert notifier.calls == [("lab: MR merged", "!1 Done — merged", "https://example.com/mr/1")]


def test_notifier_failure_does_not_abort(database, repo):
    mock = MockGitLab(mrs=[mr_item(1, "My MR", "alice")])
    engine = make_engine(database, mock)
    notifier = CaptureNotifier(fail=True)
    engine.sync_all_with_notifications("alice", Notifications(), notifier)
    mock.discussions = {1: [Discussion(id="d", notes=[Note(id=1, body="x", author="bob")])]}
    engine.sync_all_with_notifications("alice", Notifications(), notifier)
    assert len(notifier.calls) == 1


def test_notifications_without_username_only_syncs(database, repo):
    notifier = CaptureNotifier()
    engine = make_engine(database, MockGitLab(mrs=[mr_item(1, "t", "alice")]))
    engine.sync_all_with_notifications("", Notifications(), notifier)
    assert notifier.calls == []
    assert len(database.list_mrs(MRFilter())) == 1