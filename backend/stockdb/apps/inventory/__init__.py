"""
Inventory module.

Current stock items. Every create / update / delete is written to the
audit log in the same transaction.
"""

from . import models  # noqa: F401
