"""
Account use cases: create, edit (including guest promotion), authenticate,
fetch and delete.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from pawprint.core.errors import NotFoundError, ValidationError, storage_guard
from pawprint.core.security import hash_password, needs_rehash, verify_password
from pawprint.db.models import Profile, User
from pawprint.repositories.sql_repository import DuplicateEmailError, SQLRepository
from pawprint.services.session_service import issue_session
from pawprint.services.validation import (
    snapshot,
    validate_authenticate,
    validate_create,
    validate_edit,
)

EMAIL_TAKEN = "An account with this email already exists"


@dataclass
class AccountResult:
    account: User
    profile: Profile


@dataclass
class LoginResult:
    account: User
    session_token: str


@dataclass
class AccountService:
    """Runs validation before any write and turns storage conflicts into field errors."""

    def __post_init__(self):
        self.repository = SQLRepository()

    # -------------------------------------- leitura --------------------------------------
    def get_account(self, account_id: int) -> User:
        account = self.repository.find_user_by_id(account_id)
        if not account:
            raise NotFoundError("User not found")
        return account

    def get_profiles(self, account_id: int) -> list[Profile]:
        return self.repository.get_profiles_for_user(account_id)

    # -------------------------------------- cadastro --------------------------------------
    def create_account(self, fields: Mapping[str, object]) -> AccountResult:
        candidate = snapshot(fields)
        errors = validate_create(candidate, self.repository.find_user_by_email)
        if errors:
            raise ValidationError(errors)
        try:
            with storage_guard():
                account, profile = self.repository.create_user_with_profile(
                    first_name=candidate["firstName"],
                    last_name=candidate["lastName"],
                    email=candidate["email"],
                    password_hash=hash_password(candidate["password"]),
                    username=candidate["email"].split("@", 1)[0],
                )
        except DuplicateEmailError:
            # Lost the race against a concurrent signup with the same email.
            raise ValidationError.single("email", EMAIL_TAKEN)
        return AccountResult(account=account, profile=profile)

    # -------------------------------------- edicao --------------------------------------
    def edit_account(self, account_id: int, fields: Mapping[str, object]) -> User:
        account = self.get_account(account_id)
        candidate = snapshot(fields)
        errors = validate_edit(candidate, account, self.repository.find_user_by_email)
        if errors:
            raise ValidationError(errors)

        changes: dict = {}
        if candidate["firstName"]:
            changes["first_name"] = candidate["firstName"]
        if candidate["lastName"]:
            changes["last_name"] = candidate["lastName"]
        if candidate["email"]:
            changes["email"] = candidate["email"]
        if candidate["password"]:
            changes["password_hash"] = hash_password(candidate["password"])
        if account.is_guest and ("email" in changes or "password_hash" in changes):
            # A guest that sets its own credentials is claimed and no longer expires.
            changes["is_guest"] = False
        if not changes:
            return account

        try:
            with storage_guard():
                updated = self.repository.update_user(account.id, changes)
        except DuplicateEmailError:
            raise ValidationError.single("email", EMAIL_TAKEN)
        if updated is None:
            raise NotFoundError("User not found")
        return updated

    # -------------------------------------- login --------------------------------------
    def authenticate(self, fields: Mapping[str, object]) -> User:
        candidate = snapshot(fields)
        account = self.repository.find_user_by_email(candidate["email"] or "")
        errors = validate_authenticate(candidate, account, verify_password)
        if errors:
            raise ValidationError(errors)
        if needs_rehash(account.password_hash):
            with storage_guard():
                self.repository.update_user(account.id, {"password_hash": hash_password(candidate["password"])})
        return account

    def login(self, fields: Mapping[str, object]) -> LoginResult:
        account = self.authenticate(fields)
        with storage_guard():
            token = issue_session(account.id)
        return LoginResult(account=account, session_token=token)

    # -------------------------------------- remocao --------------------------------------
    def delete_account(self, account_id: int) -> User:
        with storage_guard():
            account = self.repository.delete_user_by_id(account_id)
        if not account:
            raise NotFoundError("User not found")
        return account
