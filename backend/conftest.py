from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
# Cheap hashing keeps the suite fast.
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

from stockdb.database import Base  # noqa: E402
from stockdb.apps.accounts import models as account_models  # noqa: E402
from stockdb.apps.inventory import models as inventory_models  # noqa: E402
from stockdb.apps.audit import models as audit_models  # noqa: E402
from stockdb.policy import Role  # noqa: E402
from stockdb.security import Principal, get_password_hash  # noqa: E402

TEST_PASSWORD = "Sup3r-Secret!"

TABLES = [
    account_models.User.__table__,
    inventory_models.Item.__table__,
    audit_models.AuditEntry.__table__,
]


def make_engine(url: str = "sqlite+pysqlite:///:memory:"):
    if url.endswith(":memory:"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    Base.metadata.create_all(bind=engine, tables=TABLES)
    return engine


def make_sessionmaker(engine):
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_engine():
    engine = make_engine()
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(db_engine):
    session = make_sessionmaker(db_engine)()
    try:
        yield session
    finally:
        session.close()


def _create_user(db, username: str, role: str) -> account_models.User:
    user = account_models.User(
        username=username,
        password_hash=get_password_hash(TEST_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def admin_user(db_session):
    return _create_user(db_session, "admin", Role.ADMIN.value)


@pytest.fixture()
def manager_user(db_session):
    return _create_user(db_session, "manager", Role.MANAGER.value)


@pytest.fixture()
def viewer_user(db_session):
    return _create_user(db_session, "viewer", Role.VIEWER.value)


@pytest.fixture()
def admin(admin_user) -> Principal:
    return Principal.from_user(admin_user)


@pytest.fixture()
def manager(manager_user) -> Principal:
    return Principal.from_user(manager_user)


@pytest.fixture()
def viewer(viewer_user) -> Principal:
    return Principal.from_user(viewer_user)


class FakeClock:
    """Each call returns a time one second after the previous one."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture()
def fake_clock(monkeypatch):
    clock = FakeClock(datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc))
    monkeypatch.setattr("stockdb.utils.clock.utcnow", clock)
    return clock


@pytest.fixture()
def client(db_engine, admin_user, manager_user, viewer_user):
    from fastapi.testclient import TestClient

    from stockdb.database import get_read_db, get_write_db
    from stockdb.main import app

    Session = make_sessionmaker(db_engine)

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_read_db] = override_db
    app.dependency_overrides[get_write_db] = override_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def auth_headers(client, username: str) -> dict:
    response = client.post("/auth/login", json={"username": username, "password": TEST_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
