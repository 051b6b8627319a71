# tests/services/test_moderation.py
"""Service tests for hiding and unhiding comments."""

import pytest

from school_forum.core.errors import AuthenticationRequired, NotFoundError, PermissionDenied
from school_forum.services import ModerationService
from school_forum.services.votes import toggle_upvote


def test_hide_and_unhide_preserve_content(
    db_session, test_post, make_comment, teacher, other_parent
) -> None:
    """Hiding then unhiding leaves body, votes and replies untouched."""
    comment = make_comment(test_post, body="Original words")
    reply = make_comment(test_post, comment, body="A reply")
    toggle_upvote(db_session, other_parent, "comment", comment.id)

    hidden = ModerationService.set_hidden(db_session, teacher, comment.id, True)
    assert hidden.hidden is True
    assert hidden.hidden_by == teacher.id

    restored = ModerationService.set_hidden(db_session, teacher, comment.id, False)
    assert restored.hidden is False
    assert restored.hidden_by is None
    assert restored.body == "Original words"
    assert restored.upvotes == 1
    assert reply.parent_id == comment.id


def test_set_hidden_is_idempotent(db_session, test_post, make_comment, admin, teacher) -> None:
    comment = make_comment(test_post)
    ModerationService.set_hidden(db_session, admin, comment.id, True)
    again = ModerationService.set_hidden(db_session, teacher, comment.id, True)
    assert again.hidden is True
    assert again.hidden_by == admin.id


def test_parents_cannot_moderate(db_session, test_post, make_comment, parent) -> None:
    comment = make_comment(test_post, author=parent)
    with pytest.raises(PermissionDenied):
        ModerationService.set_hidden(db_session, parent, comment.id, True)
    with pytest.raises(AuthenticationRequired):
        ModerationService.set_hidden(db_session, None, comment.id, True)


def test_hide_missing_comment(db_session, teacher) -> None:
    with pytest.raises(NotFoundError):
        ModerationService.set_hidden(db_session, teacher, 12345, True)
