"""
Accounts module.

Users, their roles and the login flow that issues bearer tokens.
"""

from . import models  # noqa: F401
