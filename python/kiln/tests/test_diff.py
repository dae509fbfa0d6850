"""Tests for diff.py diff engine."""

import random

import pytest

from kiln.diff import apply_ops, compute_diff, diff_files, has_changes
from kiln.errors import StoreReadError
from kiln.models import Add, CommentValue, Delete, FileDiff, Modify, TagId, TagPair

from conftest import InMemoryStore, text


class TestComputeDiff:
    """Tests for compute_diff."""

    def test_modify_and_add(self):
        """Should modify a changed title and add a new artist."""
        current = {TagId.TITLE: text(TagId.TITLE, "Old Title")}
        desired = {
            TagId.TITLE: text(TagId.TITLE, "New Title"),
            TagId.ARTIST: text(TagId.ARTIST, "Artist"),
        }

        ops = compute_diff(desired, current, set())

        assert ops == [
            Modify(text(TagId.TITLE, "Old Title"), text(TagId.TITLE, "New Title")),
            Add(text(TagId.ARTIST, "Artist")),
        ]

    def test_preserved_tag_not_deleted(self):
        """Should delete album but keep preserved genre."""
        current = {
            TagId.ALBUM: text(TagId.ALBUM, "X"),
            TagId.GENRE: text(TagId.GENRE, "Rock"),
        }

        ops = compute_diff({}, current, {TagId.GENRE})

        assert ops == [Delete(text(TagId.ALBUM, "X"))]

    def test_identical_states_produce_nothing(self, sample_state):
        assert compute_diff(sample_state, dict(sample_state)) == []

    def test_preserve_does_not_block_add_or_modify(self):
        """Should still add and modify preserved identifiers."""
        current = {TagId.GENRE: text(TagId.GENRE, "Rock")}
        desired = {
            TagId.GENRE: text(TagId.GENRE, "Jazz"),
            TagId.COMMENT: TagPair(TagId.COMMENT, CommentValue("x")),
        }
        ops = compute_diff(desired, current, {TagId.GENRE, TagId.COMMENT})
        assert {type(op) for op in ops} == {Add, Modify}
        assert len(ops) == 2

    def test_deletes_come_after_changes(self, sample_state):
        desired = {TagId.TITLE: text(TagId.TITLE, "New"),
                   TagId.ARTIST: text(TagId.ARTIST, "Other")}
        ops = compute_diff(desired, sample_state)

        kinds = [type(op) for op in ops]
        first_delete = kinds.index(Delete)
        assert all(k is Delete for k in kinds[first_delete:])
        assert all(k is not Delete for k in kinds[:first_delete])

    def test_groups_sorted_by_frame_id(self, sample_state):
        desired = {TagId.YEAR: text(TagId.YEAR, "2001"),
                   TagId.ALBUM_ARTIST: text(TagId.ALBUM_ARTIST, "VA")}
        ops = compute_diff(desired, sample_state)
        assert [op.tag_id.frame_id for op in ops] == [
            "TPE2", "TYER", "COMM", "TALB", "TCON", "TPE1",
        ]

    def test_deterministic_regardless_of_insertion_order(self, sample_state):
        """Should give the same list for any dict ordering of the inputs."""
        desired = {TagId.TITLE: text(TagId.TITLE, "T"),
                   TagId.ARTIST: text(TagId.ARTIST, "A2"),
                   TagId.YEAR: text(TagId.YEAR, "1999")}
        expected = compute_diff(desired, sample_state, [TagId.GENRE])

        rng = random.Random(7)
        for _ in range(20):
            d_items = list(desired.items())
            c_items = list(sample_state.items())
            rng.shuffle(d_items)
            rng.shuffle(c_items)
            assert compute_diff(dict(d_items), dict(c_items), [TagId.GENRE]) == expected

    def test_partition_completeness(self, sample_state):
        """Should emit exactly one op per differing identifier."""
        desired = {
            TagId.ARTIST: sample_state[TagId.ARTIST],        # same
            TagId.ALBUM: text(TagId.ALBUM, "Changed"),       # modify
            TagId.TITLE: text(TagId.TITLE, "New"),           # add
        }
        preserve = {TagId.COMMENT}
        ops = compute_diff(desired, sample_state, preserve)

        by_id = {}
        for op in ops:
            assert op.tag_id not in by_id
            by_id[op.tag_id] = type(op)

        assert by_id == {
            TagId.ALBUM: Modify,
            TagId.TITLE: Add,
            TagId.GENRE: Delete,
        }

    def test_idempotent_after_apply(self, sample_state):
        """Should produce no ops once the diff has been applied."""
        desired = {TagId.TITLE: text(TagId.TITLE, "T"),
                   TagId.GENRE: text(TagId.GENRE, "Jazz")}
        preserve = {TagId.COMMENT}
        ops = compute_diff(desired, sample_state, preserve)
        after = apply_ops(sample_state, ops)

        assert compute_diff(desired, after, preserve) == []
        assert TagId.COMMENT in after
        assert TagId.ALBUM not in after


class TestApplyOps:
    """Tests for apply_ops."""

    def test_does_not_mutate_input(self, sample_state):
        before = dict(sample_state)
        apply_ops(sample_state, [Delete(sample_state[TagId.ALBUM])])
        assert sample_state == before

    def test_applies_each_kind(self, sample_state):
        ops = [
            Add(text(TagId.TITLE, "T")),
            Modify(sample_state[TagId.ARTIST], text(TagId.ARTIST, "B")),
            Delete(sample_state[TagId.GENRE]),
        ]
        result = apply_ops(sample_state, ops)
        assert result[TagId.TITLE] == text(TagId.TITLE, "T")
        assert result[TagId.ARTIST] == text(TagId.ARTIST, "B")
        assert TagId.GENRE not in result


class TestHasChanges:

    def test_empty_list(self):
        assert has_changes([]) is False

    def test_only_unchanged_files(self):
        assert has_changes([FileDiff("a.mp3"), FileDiff("b.mp3")]) is False

    def test_any_changed_file(self):
        diffs = [FileDiff("a.mp3"), FileDiff("b.mp3", [Add(text(TagId.TITLE, "x"))])]
        assert has_changes(diffs) is True


class TestDiffFiles:
    """Tests for diff_files batch diffing."""

    @pytest.mark.parametrize("workers", [1, 4])
    def test_results_keep_input_order(self, workers):
        paths = [f"{i:02d}.mp3" for i in range(12)]
        store = InMemoryStore({p: {TagId.TITLE: text(TagId.TITLE, p)} for p in paths})
        desired = {p: {TagId.TITLE: text(TagId.TITLE, "same")} for p in reversed(paths)}

        results = diff_files(desired, store, workers=workers)

        assert [fd.file_path for fd in results] == list(reversed(paths))
        assert all(len(fd.ops) == 1 for fd in results)

    def test_unchanged_files_have_empty_diffs(self):
        store = InMemoryStore({"a.mp3": {TagId.TITLE: text(TagId.TITLE, "x")}})
        results = diff_files({"a.mp3": {TagId.TITLE: text(TagId.TITLE, "x")}}, store)
        assert results == [FileDiff("a.mp3", [])]

    def test_passes_preserve_list(self):
        store = InMemoryStore({"a.mp3": {TagId.GENRE: text(TagId.GENRE, "Rock")}})
        results = diff_files({"a.mp3": {}}, store, [TagId.GENRE])
        assert results[0].ops == []

    def test_read_error_aborts_batch(self):
        """Should propagate the read error instead of returning partial results."""
        store = InMemoryStore(fail_read={"b.mp3"})
        desired = {"a.mp3": {}, "b.mp3": {}, "c.mp3": {}}
        with pytest.raises(StoreReadError) as exc:
            diff_files(desired, store, workers=2)
        assert exc.value.file_path == "b.mp3"
