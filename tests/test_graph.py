"""Tests for the visible-commit computation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from branchkeep import Event, EventType
from branchkeep.operations.eventlog import EventReplayer
from branchkeep.operations.graph import compute_visible_commits
from branchkeep.operations.mergebase import MergeBaseCache
from tests.conftest import oid, save_commit


def _replayer(*commit_oids: str, hidden: tuple[str, ...] = ()) -> EventReplayer:
    now = datetime.now(timezone.utc)
    events = [
        Event(event_type=EventType.COMMIT, timestamp=now, transaction_id=1, commit_oid=c)
        for c in commit_oids
    ]
    events += [
        Event(event_type=EventType.HIDE, timestamp=now, transaction_id=2, commit_oid=c)
        for c in hidden
    ]
    return EventReplayer.from_events(events)


@pytest.fixture
def cache(object_repo, merge_base_repo):
    return MergeBaseCache(object_repo, merge_base_repo)


@pytest.fixture
def history(object_repo):
    """main: m1 - m2 - m3;  stack off m2: s1 - s2."""
    c = {name: oid(i) for i, name in enumerate(["m1", "m2", "m3", "s1", "s2"], start=1)}
    save_commit(object_repo, c["m1"])
    save_commit(object_repo, c["m2"], c["m1"])
    save_commit(object_repo, c["m3"], c["m2"])
    save_commit(object_repo, c["s1"], c["m2"])
    save_commit(object_repo, c["s2"], c["s1"])
    return c


def _visible(object_repo, cache, replayer, history, *, head=None, branches=()):
    return compute_visible_commits(
        object_repo,
        cache,
        replayer,
        head_oid=head,
        main_branch_oid=history["m3"],
        branch_oids=[history["m3"], *branches],
    )


class TestComputeVisibleCommits:
    def test_main_tip_always_visible(self, object_repo, cache, history):
        visible = _visible(object_repo, cache, EventReplayer(), history)
        assert visible == {history["m3"]}

    def test_stack_walks_to_main(self, object_repo, cache, history):
        visible = _visible(
            object_repo, cache, EventReplayer(), history, branches=[history["s2"]]
        )
        assert visible == {history["m3"], history["s2"], history["s1"], history["m2"]}
        assert history["m1"] not in visible

    def test_head_is_root(self, object_repo, cache, history):
        visible = _visible(object_repo, cache, EventReplayer(), history, head=history["s1"])
        assert history["s1"] in visible
        assert history["s2"] not in visible

    def test_active_commits_are_roots(self, object_repo, cache, history):
        replayer = _replayer(history["s2"])
        visible = _visible(object_repo, cache, replayer, history)
        assert {history["s1"], history["s2"]} <= visible

    def test_hidden_commit_not_a_root(self, object_repo, cache, history):
        replayer = _replayer(history["s1"], history["s2"], hidden=(history["s2"],))
        visible = _visible(object_repo, cache, replayer, history)
        assert history["s1"] in visible
        assert history["s2"] not in visible

    def test_purged_active_commit_ignored(self, object_repo, cache, history):
        replayer = _replayer("f" * 64)
        visible = _visible(object_repo, cache, replayer, history)
        assert "f" * 64 not in visible

    def test_no_main_branch(self, object_repo, cache, history):
        visible = compute_visible_commits(
            object_repo,
            cache,
            EventReplayer(),
            head_oid=history["s2"],
            main_branch_oid=None,
            branch_oids=[],
        )
        assert visible == {history["s2"], history["s1"], history["m2"], history["m1"]}

    def test_empty_repository(self, object_repo, cache):
        visible = compute_visible_commits(
            object_repo, cache, EventReplayer(),
            head_oid=None, main_branch_oid=None, branch_oids=[],
        )
        assert visible == set()
