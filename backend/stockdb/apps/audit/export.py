from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Iterable, Optional

from ...utils.clock import ensure_utc
from . import models
from .diff import DiffResult

AUDIT_CSV_HEADER = ["action", "item_id", "username", "changed_at", "diff"]


def format_changed_at(value: Optional[datetime]) -> str:
    value = ensure_utc(value)
    if value is None:
        return ""
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def export_filename(export_date: date) -> str:
    return f"audit_{export_date:%Y-%m-%d}.csv"


def write_audit_csv(entries: Iterable[models.AuditEntry]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(AUDIT_CSV_HEADER)
    for entry in entries:
        action = getattr(entry.action, "value", entry.action)
        writer.writerow(
            [
                action,
                entry.item_id,
                entry.actor,
                format_changed_at(entry.changed_at),
                DiffResult.from_json(action, entry.diff).render(),
            ]
        )
    return buffer.getvalue().encode("utf-8")
