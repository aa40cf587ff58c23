"""
Guest accounts: creation with generated credentials and time-boxed cleanup.

A guest is claimed through the regular edit path (see AccountService), so
there is no dedicated conversion call here.
"""

from __future__ import annotations

import logging
import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from pawprint.core.config import get_settings
from pawprint.core.errors import UnexpectedError, storage_guard
from pawprint.core.security import hash_password
from pawprint.db.models import Profile, User
from pawprint.repositories.sql_repository import DuplicateEmailError, SQLRepository

logger = logging.getLogger(__name__)

GUEST_SUFFIX_LENGTH = 8
GUEST_CREATE_ATTEMPTS = 5
GUEST_FIRST_NAME = "Human"


def gen_suffix(length: int = GUEST_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))


@dataclass
class GuestCredentials:
    account: User
    profile: Profile
    email: str
    password: str


@dataclass
class GuestService:
    def __post_init__(self):
        self.repository = SQLRepository()

    def create_guest(self) -> GuestCredentials:
        """Create a guest and return the plaintext credentials needed to log it in."""
        domain = get_settings().guest_email_domain
        for attempt in range(1, GUEST_CREATE_ATTEMPTS + 1):
            suffix = gen_suffix()
            email = f"{GUEST_FIRST_NAME}{suffix}@{domain}"
            try:
                with storage_guard():
                    account, profile = self.repository.create_user_with_profile(
                        first_name=GUEST_FIRST_NAME,
                        last_name=suffix,
                        email=email,
                        password_hash=hash_password(suffix),
                        username=f"{GUEST_FIRST_NAME}_{suffix}",
                        is_guest=True,
                    )
            except DuplicateEmailError:
                logger.info("Guest suffix collision (attempt %d/%d)", attempt, GUEST_CREATE_ATTEMPTS)
                continue
            return GuestCredentials(account=account, profile=profile, email=email, password=suffix)
        raise UnexpectedError("Could not allocate a unique guest account")

    def reap_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete guests older than the configured window and return how many went.

        Runs off the request path, so failures are logged and never raised.
        Guest status and age are re-checked by each delete, which keeps a guest
        promoted after the listing alive.
        """
        ttl = get_settings().guest_ttl_seconds
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=ttl)
        deleted = 0
        try:
            for user_id in self.repository.list_expired_guest_ids(cutoff):
                if self.repository.delete_guest_if_expired(user_id, cutoff):
                    deleted += 1
        except Exception:
            logger.exception("Expired guest sweep failed after %d deletions", deleted)
            return deleted
        logger.info("Deleted %d expired guests", deleted)
        return deleted


class GuestReaper:
    """Background thread calling GuestService.reap_expired on a fixed interval."""

    def __init__(self, service: GuestService, interval_seconds: int) -> None:
        self._service = service
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self._interval <= 0 or self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="guest-reaper", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)
        self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self._service.reap_expired()
