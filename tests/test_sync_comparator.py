"""Tests for the FileComparator class and ChangeSet."""

import random

import pytest

from pypublish.sync.comparator import (
    ChangeSet,
    FileComparator,
    SyncAction,
    SyncDecision,
    compute_changes,
)
from pypublish.utils import calculate_content_hash

H1 = calculate_content_hash(b"one")
H2 = calculate_content_hash(b"two")


def _random_manifests(rng):
    """Build a local/remote manifest pair sharing part of their paths."""
    paths = [f"dir{rng.randint(0, 3)}/file{i}.md" for i in range(rng.randint(0, 30))]
    hashes = [H1, H2, calculate_content_hash(b"three")]
    local = {p: rng.choice(hashes) for p in paths if rng.random() < 0.7}
    remote = {p: rng.choice(hashes) for p in paths if rng.random() < 0.7}
    return local, remote


class TestCompareSingleFile:
    """Tests for single path decisions."""

    def test_local_only_adds(self):
        """A path that only exists locally is added."""
        decision = FileComparator()._compare_single_file("a.md", H1, None)

        assert decision.action == SyncAction.ADD
        assert decision.reason == "New local file"
        assert decision.local_hash == H1
        assert decision.remote_hash is None

    def test_remote_only_removes(self):
        """A path that only exists remotely is removed."""
        decision = FileComparator()._compare_single_file("a.md", None, H1)

        assert decision.action == SyncAction.REMOVE
        assert decision.reason == "File deleted locally"

    def test_different_hash_updates(self):
        """A path with different content is updated."""
        decision = FileComparator()._compare_single_file("a.md", H2, H1)

        assert decision.action == SyncAction.UPDATE
        assert decision.reason == "Content changed"

    def test_equal_hash_skips(self):
        """A path with identical content is reported as unchanged."""
        decision = FileComparator()._compare_single_file("a.md", H1, H1)

        assert decision.action == SyncAction.SKIP
        assert decision.reason == "Content unchanged"


class TestScenarios:
    """End to end reconciliation scenarios."""

    def test_fresh_publish(self):
        """Everything is added when the site is empty."""
        changes = compute_changes({"index.md": H1, "img/a.png": H2}, {})

        assert changes.to_add == {"index.md", "img/a.png"}
        assert changes.to_update == set()
        assert changes.to_remove == set()

    def test_content_change(self):
        """Changed content is updated."""
        changes = compute_changes({"a.md": H2}, {"a.md": H1})

        assert changes.to_add == set()
        assert changes.to_update == {"a.md"}
        assert changes.to_remove == set()

    def test_stale_removal(self):
        """Files deleted locally are removed from the site."""
        changes = compute_changes({}, {"old.md": H1})

        assert changes.to_add == set()
        assert changes.to_update == set()
        assert changes.to_remove == {"old.md"}

    def test_no_op(self):
        """Identical manifests need no operations."""
        changes = compute_changes({"a.md": H1}, {"a.md": H1})

        assert changes.is_empty
        assert changes.total == 0
        assert changes.unchanged == {"a.md"}

    def test_rename_is_add_plus_remove(self):
        """A renamed file is not detected as a move."""
        changes = compute_changes({"new.md": H1}, {"old.md": H1})

        assert changes.to_add == {"new.md"}
        assert changes.to_remove == {"old.md"}
        assert changes.to_update == set()

    def test_paths_compared_exactly(self):
        """Paths differing only in case are different files."""
        changes = compute_changes({"Note.md": H1}, {"note.md": H1})

        assert changes.to_add == {"Note.md"}
        assert changes.to_remove == {"note.md"}

    def test_both_empty(self):
        """Two empty manifests give an empty change set."""
        assert compute_changes({}, {}) == ChangeSet()


class TestProperties:
    """Properties that hold for every pair of manifests."""

    @pytest.mark.parametrize("seed", range(25))
    def test_partition_is_complete_and_disjoint(self, seed):
        """Every path lands in exactly one of the four sets."""
        local, remote = _random_manifests(random.Random(seed))

        changes = compute_changes(local, remote)
        parts = [
            changes.to_add,
            changes.to_update,
            changes.to_remove,
            changes.unchanged,
        ]

        all_paths = set(local) | set(remote)
        assert set().union(*parts) == all_paths
        assert sum(len(p) for p in parts) == len(all_paths)

        assert changes.to_add == set(local) - set(remote)
        assert changes.to_remove == set(remote) - set(local)
        for path in changes.to_update:
            assert local[path] != remote[path]
        for path in changes.unchanged:
            assert local[path] == remote[path]

    @pytest.mark.parametrize("seed", range(10))
    def test_idempotent(self, seed):
        """The same inputs always give the same change set."""
        local, remote = _random_manifests(random.Random(seed))

        assert compute_changes(local, remote) == compute_changes(local, remote)

    @pytest.mark.parametrize("seed", range(10))
    def test_converged_after_sync(self, seed):
        """Once the remote equals the local manifest nothing is left to do."""
        local, _ = _random_manifests(random.Random(seed))

        changes = compute_changes(local, dict(local))

        assert changes.is_empty
        assert changes.unchanged == set(local)

    def test_inputs_not_mutated(self):
        """The comparator only reads the manifests."""
        local = {"a.md": H1, "b.md": H2}
        remote = {"b.md": H1, "c.md": H1}
        local_copy, remote_copy = dict(local), dict(remote)

        compute_changes(local, remote)

        assert local == local_copy
        assert remote == remote_copy


class TestCompareFiles:
    """Tests for FileComparator.compare_files."""

    def test_one_decision_per_path_sorted(self):
        """Decisions cover the union of paths in sorted order."""
        decisions = FileComparator().compare_files(
            {"b.md": H1, "a.md": H1}, {"c.md": H1, "a.md": H2}
        )

        assert [d.relative_path for d in decisions] == ["a.md", "b.md", "c.md"]
        assert [d.action for d in decisions] == [
            SyncAction.UPDATE,
            SyncAction.ADD,
            SyncAction.REMOVE,
        ]


class TestChangeSet:
    """Tests for ChangeSet helpers."""

    def test_from_decisions(self):
        """Decisions are bucketed by action."""
        decisions = [
            SyncDecision(SyncAction.ADD, "New local file", "a.md", H1, None),
            SyncDecision(SyncAction.SKIP, "Content unchanged", "b.md", H1, H1),
        ]

        changes = ChangeSet.from_decisions(decisions)

        assert changes.to_add == {"a.md"}
        assert changes.unchanged == {"b.md"}
        assert not changes.is_empty
        assert changes.total == 1

    def test_stats(self):
        """stats counts every bucket."""
        changes = compute_changes(
            {"a.md": H1, "b.md": H2, "c.md": H1}, {"b.md": H1, "c.md": H1, "d.md": H1}
        )

        assert changes.stats() == {
            "added": 1,
            "updated": 1,
            "removed": 1,
            "unchanged": 1,
        }

    def test_frozen(self):
        """A ChangeSet cannot be modified after it is built."""
        changes = compute_changes({"a.md": H1}, {})

        with pytest.raises(AttributeError):
            changes.to_add = frozenset()  # type: ignore[misc]
