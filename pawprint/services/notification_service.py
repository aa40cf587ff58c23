"""Notification writes. Callers decide whether a failure here matters."""
from __future__ import annotations

from dataclasses import dataclass

from pawprint.db.models import Notification, NotificationKind
from pawprint.repositories.sql_repository import SQLRepository


@dataclass
class NotificationService:
    def __post_init__(self):
        self.repository = SQLRepository()

    def _create(self, kind: NotificationKind, actor_id: int, recipient_id: int, reference_id: int) -> Notification:
        return self.repository.create_notification(
            recipient_profile_id=recipient_id,
            actor_profile_id=actor_id,
            kind=kind.value,
            reference_id=reference_id,
        )

    def create_comment_like_notification(self, actor_id: int, recipient_id: int, like_id: int) -> Notification:
        return self._create(NotificationKind.COMMENT_LIKE, actor_id, recipient_id, like_id)

    def create_post_like_notification(self, actor_id: int, recipient_id: int, like_id: int) -> Notification:
        return self._create(NotificationKind.POST_LIKE, actor_id, recipient_id, like_id)

    def create_comment_notification(self, actor_id: int, recipient_id: int, comment_id: int) -> Notification:
        return self._create(NotificationKind.COMMENT, actor_id, recipient_id, comment_id)
