"""
Create the default console accounts: admin, manager and viewer.

Usage (from backend/):
  STOCKDB_SEED_PASSWORD=... python -m stockdb.scripts.seed_users

Existing accounts keep their password; only the role is corrected.
"""

from __future__ import annotations

import os
import sys
from typing import List, Tuple

from sqlalchemy.orm import Session

from stockdb.apps.accounts import services as account_services
from stockdb.apps.accounts.models import User
from stockdb.database import WriteSessionLocal
from stockdb.policy import Role

DEFAULT_ACCOUNTS: List[Tuple[str, Role]] = [
    ("admin", Role.ADMIN),
    ("manager", Role.MANAGER),
    ("viewer", Role.VIEWER),
]


def ensure_account(db: Session, username: str, role: Role, password: str) -> Tuple[User, bool]:
    existing = account_services.get_user_by_username(db, username)
    if existing:
        if existing.role != role.value:
            existing.role = role.value
            db.add(existing)
        return existing, False
    return account_services.create_user(db, username=username, password=password, role=role), True


def seed(db: Session, password: str) -> List[Tuple[User, bool]]:
    results = [ensure_account(db, username, role, password) for username, role in DEFAULT_ACCOUNTS]
    db.commit()
    return results


def main() -> None:
    password = os.getenv("STOCKDB_SEED_PASSWORD")
    if not password:
        sys.exit("Set STOCKDB_SEED_PASSWORD to the password for the seeded accounts.")

    db = WriteSessionLocal()
    try:
        for user, created in seed(db, password):
            print("created" if created else "exists ", user.username, "role =", user.role)
    finally:
        db.close()


if __name__ == "__main__":
    main()
