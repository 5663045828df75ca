"""
Audit module.

Append-only, field-level history of item mutations.
"""

from . import models  # noqa: F401
