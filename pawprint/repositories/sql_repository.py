"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError

from pawprint.db.models import (
    Comment,
    CommentLike,
    Notification,
    Post,
    PostLike,
    Profile,
    ProviderLink,
    User,
    UserSession,
)
from pawprint.db.session import get_session


class DuplicateEmailError(Exception):
    """Raised when the unique email constraint rejects a write."""


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def find_user_by_email(self, email: str) -> Optional[User]:
        value = normalize_email(email)
        if not value:
            return None
        with get_session() as session:
            stmt = select(User).where(User.email == value)
            return session.execute(stmt).scalar_one_or_none()

    def find_user_by_id(self, user_id: int) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def create_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str | None,
        provider: ProviderLink = ProviderLink.NONE,
        provider_id: str | None = None,
        is_guest: bool = False,
        created_at: datetime | None = None,
    ) -> User:
        now = created_at or datetime.now(timezone.utc)
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=normalize_email(email),
            password_hash=password_hash,
            provider=provider.value,
            provider_id=provider_id,
            is_guest=is_guest,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(user.email) from exc
            session.refresh(user)
            return user

    def create_user_with_profile(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str | None,
        username: str,
        is_guest: bool = False,
    ) -> tuple[User, Profile]:
        """Insert an account and its default profile in a single transaction."""
        now = datetime.now(timezone.utc)
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=normalize_email(email),
            password_hash=password_hash,
            provider=ProviderLink.NONE.value,
            is_guest=is_guest,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(user)
            try:
                session.flush()
                profile = self._new_profile(user.id, username)
                session.add(profile)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(user.email) from exc
            session.refresh(user)
            session.refresh(profile)
            return user, profile

    def update_user(self, user_id: int, fields: dict) -> Optional[User]:
        values = dict(fields)
        if "email" in values:
            values["email"] = normalize_email(values["email"])
        values["updated_at"] = datetime.now(timezone.utc)
        with get_session() as session:
            stmt = update(User).where(User.id == user_id).values(**values)
            try:
                result = session.execute(stmt)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(values.get("email", "")) from exc
            if not result.rowcount:
                return None
            return session.get(User, user_id)

    def delete_user_by_id(self, user_id: int) -> Optional[User]:
        with get_session() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            session.execute(delete(User).where(User.id == user_id))
            session.commit()
            return user

    def list_expired_guest_ids(self, cutoff: datetime) -> list[int]:
        with get_session() as session:
            stmt = select(User.id).where(User.is_guest.is_(True), User.created_at < cutoff)
            return list(session.execute(stmt).scalars().all())

    def delete_guest_if_expired(self, user_id: int, cutoff: datetime) -> bool:
        """Delete one guest, re-checking guest status and age in the same statement."""
        with get_session() as session:
            stmt = delete(User).where(
                and_(User.id == user_id, User.is_guest.is_(True), User.created_at < cutoff)
            )
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)

    # -------------------------- profiles --------------------------
    def _new_profile(self, user_id: int, username: str) -> Profile:
        return Profile(
            user_id=user_id,
            username=username,
            pet_name="Default",
            active=True,
            created_at=datetime.now(timezone.utc),
        )

    def get_profile(self, profile_id: int) -> Optional[Profile]:
        with get_session() as session:
            return session.get(Profile, profile_id)

    def get_profiles_for_user(self, user_id: int) -> list[Profile]:
        with get_session() as session:
            stmt = select(Profile).where(Profile.user_id == user_id).order_by(Profile.id)
            return list(session.execute(stmt).scalars().all())

    # -------------------------- sessions --------------------------
    def create_user_session(self, user_id: int, ttl_seconds: int) -> str:
        token = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        entity = UserSession(token=token, user_id=user_id, expires_at=now + timedelta(seconds=ttl_seconds), created_at=now)
        with get_session() as session:
            session.add(entity)
            session.commit()
        return token

    def get_user_session(self, token: str) -> Optional[UserSession]:
        with get_session() as session:
            return session.get(UserSession, token)

    def delete_user_session(self, token: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.token == token))
            session.commit()

    # -------------------------- posts & comments --------------------------
    def get_post(self, post_id: int) -> Optional[Post]:
        with get_session() as session:
            return session.get(Post, post_id)

    def get_comment(self, comment_id: int) -> Optional[Comment]:
        with get_session() as session:
            return session.get(Comment, comment_id)

    def create_comment(self, post_id: int, profile_id: int, text: str) -> Comment:
        comment = Comment(post_id=post_id, profile_id=profile_id, text=text, created_at=datetime.now(timezone.utc))
        with get_session() as session:
            session.add(comment)
            session.commit()
            session.refresh(comment)
            return comment

    def list_comments_with_likes(self, post_id: int) -> list[tuple[Comment, int]]:
        with get_session() as session:
            likes = (
                select(CommentLike.comment_id, func.count(CommentLike.id).label("likes"))
                .group_by(CommentLike.comment_id)
                .subquery()
            )
            stmt = (
                select(Comment, func.coalesce(likes.c.likes, 0))
                .outerjoin(likes, likes.c.comment_id == Comment.id)
                .where(Comment.post_id == post_id)
                .order_by(Comment.created_at, Comment.id)
            )
            return [(comment, int(count)) for comment, count in session.execute(stmt).all()]

    def delete_comment(self, comment_id: int) -> bool:
        with get_session() as session:
            result = session.execute(delete(Comment).where(Comment.id == comment_id))
            session.commit()
            return bool(result.rowcount)

    # -------------------------- likes --------------------------
    def find_comment_like(self, comment_id: int, profile_id: int) -> Optional[CommentLike]:
        with get_session() as session:
            stmt = select(CommentLike).where(CommentLike.comment_id == comment_id, CommentLike.profile_id == profile_id)
            return session.execute(stmt).scalar_one_or_none()

    def create_comment_like(self, comment_id: int, profile_id: int) -> Optional[CommentLike]:
        """Insert the like; None when the pair already exists."""
        entity = CommentLike(comment_id=comment_id, profile_id=profile_id, created_at=datetime.now(timezone.utc))
        return self._insert_unique(entity, lambda: self.find_comment_like(comment_id, profile_id))

    def delete_comment_like(self, comment_id: int, profile_id: int) -> bool:
        with get_session() as session:
            stmt = delete(CommentLike).where(CommentLike.comment_id == comment_id, CommentLike.profile_id == profile_id)
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)

    def count_comment_likes(self, comment_id: int) -> int:
        with get_session() as session:
            stmt = select(func.count(CommentLike.id)).where(CommentLike.comment_id == comment_id)
            return int(session.execute(stmt).scalar_one())

    def find_post_like(self, post_id: int, profile_id: int) -> Optional[PostLike]:
        with get_session() as session:
            stmt = select(PostLike).where(PostLike.post_id == post_id, PostLike.profile_id == profile_id)
            return session.execute(stmt).scalar_one_or_none()

    def create_post_like(self, post_id: int, profile_id: int) -> Optional[PostLike]:
        entity = PostLike(post_id=post_id, profile_id=profile_id, created_at=datetime.now(timezone.utc))
        return self._insert_unique(entity, lambda: self.find_post_like(post_id, profile_id))

    def delete_post_like(self, post_id: int, profile_id: int) -> bool:
        with get_session() as session:
            stmt = delete(PostLike).where(PostLike.post_id == post_id, PostLike.profile_id == profile_id)
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)

    def count_post_likes(self, post_id: int) -> int:
        with get_session() as session:
            stmt = select(func.count(PostLike.id)).where(PostLike.post_id == post_id)
            return int(session.execute(stmt).scalar_one())

    def _insert_unique(self, entity, existing):
        """Insert a like row; None when another writer already holds the pair."""
        with get_session() as session:
            session.add(entity)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                # Foreign key failures (target deleted meanwhile) are not duplicates.
                if existing() is None:
                    raise
                return None
            session.refresh(entity)
            return entity

    # -------------------------- notifications --------------------------
    def create_notification(self, *, recipient_profile_id: int, actor_profile_id: int, kind: str, reference_id: int) -> Notification:
        entity = Notification(
            recipient_profile_id=recipient_profile_id,
            actor_profile_id=actor_profile_id,
            kind=kind,
            reference_id=reference_id,
            created_at=datetime.now(timezone.utc),
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity
