from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from ...database import Base
from ...policy import Role
from ...utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Console user.

    `role` is stored as plain text rather than a database enum: a value the
    application does not recognise must still load, and is then treated as
    the least privileged role.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=Role.VIEWER.value, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def effective_role(self) -> Role:
        return Role.parse(self.role)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role}>"
