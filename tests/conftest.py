from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Garante que o pacote pawprint seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pawprint.core import config as core_config  # noqa: E402
from pawprint.db import models  # noqa: E402
from pawprint.db import session as db_session  # noqa: E402
from pawprint.db.models import Post  # noqa: E402
from pawprint.services.account_service import AccountService  # noqa: E402


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Configura um SQLite temporário e reseta caches de settings/engine."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("GUEST_SWEEP_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("GUEST_TTL_SECONDS", "3600")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    try:
        models.Base.metadata.drop_all(bind=engine)
    except Exception:
        pass
    try:
        engine.dispose()
    except Exception:
        pass
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def make_account(db_env):
    """Create a local account through the real service and return (account, profile)."""
    svc = AccountService()
    counter = {"n": 0}

    def _make(email: str | None = None, password: str = "secret1"):
        counter["n"] += 1
        result = svc.create_account(
            {
                "firstName": "Pet",
                "lastName": "Owner",
                "email": email or f"owner{counter['n']}@example.com",
                "password": password,
                "confirmPassword": password,
            }
        )
        return result.account, result.profile

    return _make


@pytest.fixture()
def make_post(db_env):
    def _make(profile_id: int) -> Post:
        with db_session.get_session() as session:
            post = Post(profile_id=profile_id)
            session.add(post)
            session.commit()
            session.refresh(post)
            return post

    return _make
