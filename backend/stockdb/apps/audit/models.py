from __future__ import annotations

import enum

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    desc,
)

from ...database import Base
from ...utils.clock import utcnow


class AuditAction(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditEntry(Base):
    """
    Append-only audit trail for item mutations.

    `item_id` is deliberately not a foreign key: the entries outlive the
    item they describe.
    """

    __tablename__ = "item_audit_log"
    __table_args__ = (
        Index("ix_item_audit_item_time", "item_id", "changed_at"),
        Index("ix_item_audit_action_time", "action", "changed_at"),
        Index("ix_item_audit_time_desc", desc("changed_at"), "id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(String(36), nullable=False, index=True)
    action = Column(
        SAEnum(AuditAction, name="audit_action_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    actor = Column(String(64), nullable=False, index=True)
    actor_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    diff = Column(JSON, nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AuditEntry id={self.id} item={self.item_id} action={self.action}>"
