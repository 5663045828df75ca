from __future__ import annotations

from stockdb.apps.accounts import models as account_models
from stockdb.scripts.seed_users import seed
from stockdb.security import verify_password


def test_seed_creates_default_accounts(db_session):
    results = seed(db_session, "seed-pass")

    assert [(user.username, user.role, created) for user, created in results] == [
        ("admin", "admin", True),
        ("manager", "manager", True),
        ("viewer", "viewer", True),
    ]
    admin = db_session.query(account_models.User).filter_by(username="admin").one()
    assert verify_password("seed-pass", admin.password_hash)


def test_seed_is_idempotent_and_fixes_roles(db_session, manager_user):
    manager_user.role = "viewer"
    db_session.commit()
    previous_hash = manager_user.password_hash

    results = dict((user.username, created) for user, created in seed(db_session, "other"))

    assert results["manager"] is False
    db_session.refresh(manager_user)
    assert manager_user.role == "manager"
    assert manager_user.password_hash == previous_hash
    assert db_session.query(account_models.User).count() == 3
