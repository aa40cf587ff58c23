from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

import pawprint.services.guest_service as guest_module
from pawprint.core.errors import UnexpectedError
from pawprint.repositories.sql_repository import SQLRepository
from pawprint.services.account_service import AccountService
from pawprint.services.guest_service import GuestReaper, GuestService

TTL = 3600  # GUEST_TTL_SECONDS set by the db_env fixture


def test_create_guest_can_log_in_immediately(db_env):
    guest = GuestService().create_guest()

    assert guest.password.isdigit() and len(guest.password) == 8
    assert guest.email == f"Human{guest.password}@pawprint.com"
    assert guest.account.is_guest is True
    assert guest.account.first_name == "Human"
    assert guest.account.last_name == guest.password
    assert guest.profile.username == f"Human_{guest.password}"

    outcome = AccountService().login({"email": guest.email, "password": guest.password})
    assert outcome.account.id == guest.account.id


def test_create_guest_retries_on_suffix_collision(db_env, monkeypatch):
    taken = GuestService().create_guest()
    suffixes = iter([taken.password, taken.password, "12345678"])
    monkeypatch.setattr(guest_module, "gen_suffix", lambda: next(suffixes))

    guest = GuestService().create_guest()
    assert guest.password == "12345678"
    assert guest.account.id != taken.account.id


def test_create_guest_gives_up_after_repeated_collisions(db_env, monkeypatch):
    taken = GuestService().create_guest()
    monkeypatch.setattr(guest_module, "gen_suffix", lambda: taken.password)
    with pytest.raises(UnexpectedError):
        GuestService().create_guest()


def _guest_aged(seconds: int, now: datetime):
    guest = GuestService().create_guest()
    SQLRepository().update_user(guest.account.id, {"created_at": now - timedelta(seconds=seconds)})
    return guest.account.id


def test_reap_respects_window_boundary(db_env):
    now = datetime.now(timezone.utc)
    younger = _guest_aged(TTL - 1, now)
    exact = _guest_aged(TTL, now)
    older = _guest_aged(TTL + 1, now)

    deleted = GuestService().reap_expired(now=now)

    repo = SQLRepository()
    assert deleted == 1
    assert repo.find_user_by_id(younger) is not None
    assert repo.find_user_by_id(exact) is not None
    assert repo.find_user_by_id(older) is None


def test_reap_never_touches_real_accounts(db_env, make_account):
    now = datetime.now(timezone.utc)
    account, _ = make_account()
    SQLRepository().update_user(account.id, {"created_at": now - timedelta(days=30)})

    assert GuestService().reap_expired(now=now) == 0
    assert SQLRepository().find_user_by_id(account.id) is not None


def test_promoted_guest_survives_sweep_that_listed_it(db_env, monkeypatch):
    now = datetime.now(timezone.utc)
    guest_id = _guest_aged(TTL + 60, now)
    repo = SQLRepository()
    original_list = SQLRepository.list_expired_guest_ids

    def list_then_promote(self, cutoff):
        ids = original_list(self, cutoff)
        # The guest claims the account between the listing and the delete.
        AccountService().edit_account(guest_id, {"email": "claimed@example.com"})
        return ids

    monkeypatch.setattr(SQLRepository, "list_expired_guest_ids", list_then_promote)

    assert GuestService().reap_expired(now=now) == 0
    survivor = repo.find_user_by_id(guest_id)
    assert survivor is not None
    assert survivor.is_guest is False
    assert survivor.email == "claimed@example.com"


def test_guest_promotion_keeps_id_and_credentials_work(db_env):
    guest = GuestService().create_guest()
    svc = AccountService()
    updated = svc.edit_account(
        guest.account.id,
        {"email": "real@example.com", "password": "realpass", "confirmPassword": "realpass"},
    )
    assert updated.id == guest.account.id
    assert updated.is_guest is False
    assert svc.authenticate({"email": "real@example.com", "password": "realpass"}).id == guest.account.id


def test_reap_failure_is_logged_not_raised(db_env, monkeypatch, caplog):
    def boom(self, cutoff):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(SQLRepository, "list_expired_guest_ids", boom)
    with caplog.at_level("ERROR", logger="pawprint.services.guest_service"):
        assert GuestService().reap_expired() == 0
    assert "Expired guest sweep failed" in caplog.text


def test_reaper_disabled_with_zero_interval(db_env):
    reaper = GuestReaper(GuestService(), 0)
    reaper.start()
    assert reaper.running is False
    reaper.stop()


def test_reaper_start_and_stop(db_env):
    class FakeService:
        def reap_expired(self):
            return 0

    reaper = GuestReaper(FakeService(), 1)
    reaper.start()
    try:
        assert reaper.running is True
    finally:
        reaper.stop()
    assert reaper.running is False


def test_password_only_claim_keeps_guest_email_and_survives_sweep(db_env):
    now = datetime.now(timezone.utc)
    guest = GuestService().create_guest()
    updated = AccountService().edit_account(
        guest.account.id, {"password": "mypass1", "confirmPassword": "mypass1"}
    )
    assert updated.is_guest is False
    assert updated.email == guest.email.lower()

    SQLRepository().update_user(guest.account.id, {"created_at": now - timedelta(seconds=TTL * 2)})
    assert GuestService().reap_expired(now=now) == 0
    assert SQLRepository().find_user_by_id(guest.account.id) is not None


def test_name_only_edit_does_not_claim_guest(db_env):
    guest = GuestService().create_guest()
    updated = AccountService().edit_account(guest.account.id, {"firstName": "Rover"})
    assert updated.is_guest is True


def test_failed_guest_profile_leaves_no_account(db_env, monkeypatch):
    def broken(self, user_id, username):
        raise OperationalError("INSERT INTO profiles", {}, Exception("disk I/O error"))

    monkeypatch.setattr(SQLRepository, "_new_profile", broken)
    with pytest.raises(UnexpectedError):
        GuestService().create_guest()
    assert SQLRepository().list_expired_guest_ids(datetime.now(timezone.utc) + timedelta(days=1)) == []
