"""Tests for page-number pagination over the comment tree."""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from interaction_service.comments.models import Comment, create_comment
from interaction_service.comments.pagination import (
    SortField,
    SortOrder,
    build_tree,
    page_count,
    paginate,
)


BASE = datetime(2025, 1, 1, tzinfo=UTC)


def make_comment(
    submission_id: UUID,
    minutes: int,
    parent_id: UUID | None = None,
    edited_minutes: int | None = None,
) -> Comment:
    comment = create_comment(submission_id, uuid4(), f"at {minutes}", parent_id)
    comment.created_at = BASE + timedelta(minutes=minutes)
    comment.updated_at = BASE + timedelta(
        minutes=minutes if edited_minutes is None else edited_minutes
    )
    return comment


class TestPageCount:
    @pytest.mark.parametrize(
        ("total", "size", "expected"),
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (12, 5, 3)],
    )
    def test_ceil(self, total: int, size: int, expected: int):
        assert page_count(total, size) == expected


class TestSortParsing:
    def test_known_fields(self):
        assert SortField.parse("createdAt") is SortField.CREATED_AT
        assert SortField.parse("updatedAt") is SortField.UPDATED_AT
        assert SortField.parse("updated_at") is SortField.UPDATED_AT

    def test_unknown_field_falls_back(self):
        assert SortField.parse("votes") is SortField.CREATED_AT
        assert SortField.parse(None) is SortField.CREATED_AT

    def test_order(self):
        assert SortOrder.parse("asc") is SortOrder.ASC
        assert SortOrder.parse("ASC") is SortOrder.ASC
        assert SortOrder.parse("desc") is SortOrder.DESC
        assert SortOrder.parse("sideways") is SortOrder.DESC


class TestPaginate:
    def test_newest_first_by_default(self):
        submission_id = uuid4()
        comments = [make_comment(submission_id, m) for m in (1, 3, 2)]

        result = paginate(comments, page=1, size=10)

        assert [c.content for c in result.data] == ["at 3", "at 2", "at 1"]

    def test_ascending(self):
        submission_id = uuid4()
        comments = [make_comment(submission_id, m) for m in (1, 3, 2)]

        result = paginate(comments, 1, 10, order=SortOrder.ASC)

        assert [c.content for c in result.data] == ["at 1", "at 2", "at 3"]

    def test_sort_by_updated_at(self):
        submission_id = uuid4()
        old_but_edited = make_comment(submission_id, 1, edited_minutes=10)
        recent = make_comment(submission_id, 5)

        result = paginate([recent, old_but_edited], 1, 10, SortField.UPDATED_AT)

        assert result.data[0].comment_id == old_but_edited.comment_id

    def test_ties_have_stable_order(self):
        """Equal timestamps are ordered by id, so pages never overlap."""
        submission_id = uuid4()
        comments = [make_comment(submission_id, 0) for _ in range(6)]

        pages = [paginate(comments, p, 2).data for p in (1, 2, 3)]
        ids = [c.comment_id for page in pages for c in page]

        assert len(set(ids)) == 6
        assert ids == sorted(ids, reverse=True)

    def test_page_past_end_is_empty(self):
        submission_id = uuid4()
        comments = [make_comment(submission_id, m) for m in range(3)]

        result = paginate(comments, page=5, size=2)

        assert result.data == []
        assert result.pages == 2
        assert result.total == 3

    def test_replies_follow_their_parent_page(self):
        submission_id = uuid4()
        parents = [make_comment(submission_id, m) for m in range(4)]
        reply = make_comment(submission_id, 9, parent_id=parents[0].comment_id)

        first = paginate([*parents, reply], page=1, size=2)
        second = paginate([*parents, reply], page=2, size=2)

        assert all(c.replies == [] for c in first.data)
        oldest = next(c for c in second.data if c.comment_id == parents[0].comment_id)
        assert [r.comment_id for r in oldest.replies] == [reply.comment_id]


class TestBuildTree:
    def test_orphan_replies_are_dropped(self):
        submission_id = uuid4()
        parent = make_comment(submission_id, 0)
        orphan = make_comment(submission_id, 1, parent_id=uuid4())

        top_level, replies = build_tree([parent, orphan])

        assert top_level == [parent]
        assert replies == {}
