from __future__ import annotations

import pytest
from sqlalchemy import select

from pawprint.core.errors import NotFoundError, ValidationError
from pawprint.db.models import CommentLike, Notification
from pawprint.db.session import get_session
from pawprint.repositories.sql_repository import SQLRepository
from pawprint.services.interaction_service import InteractionService
from pawprint.services.notification_service import NotificationService


def _notifications(kind: str | None = None) -> list[Notification]:
    with get_session() as session:
        stmt = select(Notification).order_by(Notification.id)
        if kind:
            stmt = stmt.where(Notification.kind == kind)
        return list(session.execute(stmt).scalars().all())


def _like_rows(comment_id: int, profile_id: int) -> int:
    with get_session() as session:
        stmt = select(CommentLike).where(CommentLike.comment_id == comment_id, CommentLike.profile_id == profile_id)
        return len(session.execute(stmt).scalars().all())


@pytest.fixture()
def thread(make_account, make_post):
    """An author with a post and a comment on it, plus a second profile to interact."""
    _, author = make_account(email="author@example.com")
    _, fan = make_account(email="fan@example.com")
    post = make_post(author.id)
    comment = SQLRepository().create_comment(post.id, author.id, "Good boy")
    return author, fan, post, comment


def test_like_twice_keeps_one_like_and_one_notification(thread):
    author, fan, _, comment = thread
    svc = InteractionService()

    first = svc.like_comment(comment.id, fan.id)
    second = svc.like_comment(comment.id, fan.id)

    assert first.changed is True and first.notification is not None
    assert second.changed is False and second.notification is None
    assert second.total_likes == 1
    assert _like_rows(comment.id, fan.id) == 1

    notes = _notifications("comment_like")
    assert len(notes) == 1
    assert notes[0].recipient_profile_id == author.id
    assert notes[0].actor_profile_id == fan.id
    like = SQLRepository().find_comment_like(comment.id, fan.id)
    assert notes[0].reference_id == like.id


def test_unlike_then_like_creates_fresh_like_and_keeps_old_notification(thread):
    _, fan, _, comment = thread
    svc = InteractionService()

    svc.like_comment(comment.id, fan.id)
    old_note = _notifications("comment_like")[0]

    unliked = svc.unlike_comment(comment.id, fan.id)
    assert unliked.liked is False and unliked.changed is True
    assert _notifications("comment_like")[0].id == old_note.id

    svc.like_comment(comment.id, fan.id)
    assert _like_rows(comment.id, fan.id) == 1
    notes = _notifications("comment_like")
    assert [n.id for n in notes][0] == old_note.id
    assert len(notes) == 2
    assert notes[1].reference_id != old_note.reference_id


def test_unlike_when_not_liked_is_noop(thread):
    _, fan, _, comment = thread
    outcome = InteractionService().unlike_comment(comment.id, fan.id)
    assert outcome.changed is False
    assert outcome.total_likes == 0


def test_self_like_does_not_notify(thread):
    author, _, _, comment = thread
    outcome = InteractionService().like_comment(comment.id, author.id)
    assert outcome.changed is True
    assert outcome.notification is None
    assert _notifications("comment_like") == []


def test_notification_failure_keeps_the_like(thread, monkeypatch, caplog):
    _, fan, _, comment = thread

    def broken(self, actor_id, recipient_id, like_id):
        raise RuntimeError("queue down")

    monkeypatch.setattr(NotificationService, "create_comment_like_notification", broken)
    with caplog.at_level("WARNING", logger="pawprint.services.interaction_service"):
        outcome = InteractionService().like_comment(comment.id, fan.id)

    assert outcome.changed is True
    assert outcome.notification is None
    assert _like_rows(comment.id, fan.id) == 1
    assert _notifications() == []
    assert "failed for reference" in caplog.text


def test_racing_like_insert_does_not_notify_twice(thread, monkeypatch):
    _, fan, _, comment = thread
    svc = InteractionService()
    svc.like_comment(comment.id, fan.id)

    # Simulate a second request whose existence check ran before the first insert.
    monkeypatch.setattr(SQLRepository, "find_comment_like", lambda self, c, p: None)
    outcome = svc.like_comment(comment.id, fan.id)

    assert outcome.changed is False
    assert _like_rows(comment.id, fan.id) == 1
    assert len(_notifications("comment_like")) == 1


def test_like_unknown_comment(thread):
    _, fan, _, _ = thread
    with pytest.raises(NotFoundError):
        InteractionService().like_comment(9999, fan.id)


def test_post_like_cycle(thread):
    author, fan, post, _ = thread
    svc = InteractionService()
    assert svc.like_post(post.id, fan.id).total_likes == 1
    assert svc.like_post(post.id, fan.id).changed is False
    assert svc.unlike_post(post.id, fan.id).total_likes == 0
    notes = _notifications("post_like")
    assert len(notes) == 1 and notes[0].recipient_profile_id == author.id


def test_comments_create_list_delete(thread):
    author, fan, post, first = thread
    svc = InteractionService()

    created = svc.create_comment(post.id, fan.id, "  Woof!  ")
    assert created.text == "Woof!"
    assert [n.kind for n in _notifications()] == ["comment"]

    svc.like_comment(first.id, fan.id)
    views = svc.get_comments(post.id)
    assert [(v.comment.id, v.likes) for v in views] == [(first.id, 1), (created.id, 0)]

    svc.delete_comment(first.id, author.user_id)
    assert [v.comment.id for v in svc.get_comments(post.id)] == [created.id]
    assert _like_rows(first.id, fan.id) == 0
    with pytest.raises(NotFoundError):
        svc.delete_comment(first.id, author.user_id)


def test_create_comment_rejects_blank_text(thread):
    _, fan, post, _ = thread
    with pytest.raises(ValidationError) as excinfo:
        InteractionService().create_comment(post.id, fan.id, "   ")
    assert excinfo.value.fields() == ["text"]


def test_profile_for_account_checks_ownership(make_account):
    owner, profile = make_account(email="owner@example.com")
    other, _ = make_account(email="other@example.com")
    svc = InteractionService()
    assert svc.profile_for_account(profile.id, owner.id).id == profile.id
    with pytest.raises(NotFoundError):
        svc.profile_for_account(profile.id, other.id)


def test_like_with_unknown_profile(thread):
    _, _, post, comment = thread
    svc = InteractionService()
    with pytest.raises(NotFoundError):
        svc.like_comment(comment.id, 9999)
    with pytest.raises(NotFoundError):
        svc.like_post(post.id, 9999)


def test_only_the_author_account_deletes_a_comment(thread):
    author, fan, post, comment = thread
    svc = InteractionService()

    with pytest.raises(NotFoundError):
        svc.delete_comment(comment.id, fan.user_id)
    assert [v.comment.id for v in svc.get_comments(post.id)] == [comment.id]

    svc.delete_comment(comment.id, author.user_id)
    assert svc.get_comments(post.id) == []


def test_post_relike_gets_a_fresh_reference(thread):
    _, fan, post, _ = thread
    svc = InteractionService()

    svc.like_post(post.id, fan.id)
    svc.unlike_post(post.id, fan.id)
    svc.like_post(post.id, fan.id)

    refs = [n.reference_id for n in _notifications("post_like")]
    assert len(refs) == 2 and refs[0] != refs[1]
