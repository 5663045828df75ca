from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ...policy import Operation, Role, ensure_allowed
from ...security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    Principal,
    create_access_token,
    get_password_hash,
    needs_rehash,
    verify_password,
)
from . import models

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when login credentials are invalid."""


def _normalise_username(username: str) -> str:
    return (username or "").strip()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.username == _normalise_username(username))
        .first()
    )


def authenticate_user(db: Session, *, username: str, password: str) -> models.User:
    """
    Password login.

    Unknown users and wrong passwords raise the same error so the response
    does not reveal which usernames exist. Legacy bcrypt hashes are
    upgraded to Argon2 on a successful login.
    """
    user = get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login failed", extra={"username": _normalise_username(username)})
        raise AuthenticationError("Incorrect username or password.")

    if needs_rehash(user.password_hash):
        user.password_hash = get_password_hash(password)
        db.add(user)
        db.commit()
        db.refresh(user)

    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.effective_role.value,
    }
    token = create_access_token(data=payload, expires_delta=expires_delta)
    return token, int(expires_delta.total_seconds())


def list_users(db: Session, *, principal: Principal) -> List[models.User]:
    ensure_allowed(principal.role, Operation.LIST_USERS, actor=principal.username)
    return db.query(models.User).order_by(models.User.username.asc()).all()


def create_user(db: Session, *, username: str, password: str, role: Role) -> models.User:
    user = models.User(
        username=_normalise_username(username),
        password_hash=get_password_hash(password),
        role=role.value,
    )
    db.add(user)
    db.flush()
    return user
