"""
ids.py – External identifiers (the `uid` column) for Tududi rows.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable

UID_ALPHABET = string.digits + string.ascii_lowercase
UID_LENGTH = 15

IdFactory = Callable[[], str]


def generate_uid() -> str:
    """Return a random 15-character lowercase alphanumeric id."""
    return "".join(secrets.choice(UID_ALPHABET) for _ in range(UID_LENGTH))
