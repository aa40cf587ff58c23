"""
Likes and comments on posts, plus the notifications they trigger.

Every like is two separate steps: the like row is committed first, then a
notification is attempted. A failed notification is logged and dropped; the
like stays. A notification is only attempted after a like row was actually
inserted by this call, so repeated or racing likes notify at most once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from pawprint.core.errors import NotFoundError, TransientSideEffectError, ValidationError, storage_guard
from pawprint.db.models import Comment, Notification, Post, Profile
from pawprint.repositories.sql_repository import SQLRepository
from pawprint.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

COMMENT_MAX_LENGTH = 500

Dispatch = Callable[[int, int, int], Notification]


@dataclass
class LikeOutcome:
    liked: bool
    changed: bool
    total_likes: int
    notification: Optional[Notification] = None


@dataclass
class CommentView:
    comment: Comment
    likes: int

    def to_dict(self) -> dict:
        return {
            "id": self.comment.id,
            "postId": self.comment.post_id,
            "profileId": self.comment.profile_id,
            "text": self.comment.text,
            "likes": self.likes,
            "createdAt": self.comment.created_at.isoformat() if self.comment.created_at else None,
        }


@dataclass
class InteractionService:
    notifications: NotificationService = field(default_factory=NotificationService)

    def __post_init__(self):
        self.repository = SQLRepository()

    # -------------------------------------- lookups --------------------------------------
    def profile_for_account(self, profile_id: int, account_id: int) -> Profile:
        profile = self.repository.get_profile(profile_id)
        if not profile or profile.user_id != account_id:
            raise NotFoundError("Profile not found")
        return profile

    def _profile(self, profile_id: int) -> Profile:
        profile = self.repository.get_profile(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def _comment(self, comment_id: int) -> Comment:
        comment = self.repository.get_comment(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    def _post(self, post_id: int) -> Post:
        post = self.repository.get_post(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    def _notify(self, dispatch: Dispatch, actor_id: int, recipient_id: int, reference_id: int) -> Optional[Notification]:
        if actor_id == recipient_id:
            return None
        try:
            return dispatch(actor_id, recipient_id, reference_id)
        except Exception as exc:
            name = getattr(dispatch, "__name__", "notification")
            failure = TransientSideEffectError(f"{name} failed for reference {reference_id}")
            logger.warning("%s", failure.message, exc_info=exc)
            return None

    # -------------------------------------- comment likes --------------------------------------
    def like_comment(self, comment_id: int, profile_id: int) -> LikeOutcome:
        comment = self._comment(comment_id)
        self._profile(profile_id)
        like = None
        if self.repository.find_comment_like(comment_id, profile_id) is None:
            with storage_guard():
                like = self.repository.create_comment_like(comment_id, profile_id)
        notification = None
        if like is not None:
            notification = self._notify(
                self.notifications.create_comment_like_notification, profile_id, comment.profile_id, like.id
            )
        return LikeOutcome(
            liked=True,
            changed=like is not None,
            total_likes=self.repository.count_comment_likes(comment_id),
            notification=notification,
        )

    def unlike_comment(self, comment_id: int, profile_id: int) -> LikeOutcome:
        self._comment(comment_id)
        with storage_guard():
            removed = self.repository.delete_comment_like(comment_id, profile_id)
        return LikeOutcome(liked=False, changed=removed, total_likes=self.repository.count_comment_likes(comment_id))

    # -------------------------------------- post likes --------------------------------------
    def like_post(self, post_id: int, profile_id: int) -> LikeOutcome:
        post = self._post(post_id)
        self._profile(profile_id)
        like = None
        if self.repository.find_post_like(post_id, profile_id) is None:
            with storage_guard():
                like = self.repository.create_post_like(post_id, profile_id)
        notification = None
        if like is not None:
            notification = self._notify(self.notifications.create_post_like_notification, profile_id, post.profile_id, like.id)
        return LikeOutcome(liked=True, changed=like is not None, total_likes=self.repository.count_post_likes(post_id), notification=notification)

    def unlike_post(self, post_id: int, profile_id: int) -> LikeOutcome:
        self._post(post_id)
        with storage_guard():
            removed = self.repository.delete_post_like(post_id, profile_id)
        return LikeOutcome(liked=False, changed=removed, total_likes=self.repository.count_post_likes(post_id))

    # -------------------------------------- comments --------------------------------------
    def create_comment(self, post_id: int, profile_id: int, text: str | None) -> Comment:
        post = self._post(post_id)
        body = (text or "").strip()
        if not 1 <= len(body) <= COMMENT_MAX_LENGTH:
            raise ValidationError.single("text", f"Comment must be between 1 and {COMMENT_MAX_LENGTH} characters")
        with storage_guard():
            comment = self.repository.create_comment(post_id, profile_id, body)
        self._notify(self.notifications.create_comment_notification, profile_id, post.profile_id, comment.id)
        return comment

    def get_comments(self, post_id: int) -> list[CommentView]:
        self._post(post_id)
        return [CommentView(comment, likes) for comment, likes in self.repository.list_comments_with_likes(post_id)]

    def delete_comment(self, comment_id: int, account_id: int) -> None:
        """Only the account owning the comment's author profile may delete it."""
        comment = self._comment(comment_id)
        author = self.repository.get_profile(comment.profile_id)
        if not author or author.user_id != account_id:
            raise NotFoundError("Comment not found")
        with storage_guard():
            removed = self.repository.delete_comment(comment_id)
        if not removed:
            raise NotFoundError("Comment not found")
