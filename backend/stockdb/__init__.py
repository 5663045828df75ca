# backend/stockdb/__init__.py
"""
Import ORM models from each app so that Alembic and
Base.metadata.create_all() see every table.

The model classes themselves live in stockdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models    # users / auth
from .apps.inventory import models as inventory_models  # items
from .apps.audit import models as audit_models          # item audit log

__all__ = [
    "accounts_models",
    "inventory_models",
    "audit_models",
]
