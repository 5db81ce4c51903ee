"""Random alphanumeric identifiers."""

from __future__ import annotations

import secrets
import string

ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


def random_string(length: int = 12) -> str:
    """Return ``length`` characters drawn uniformly from digits and ASCII letters."""
    if length < 0:
        raise ValueError("length must not be negative")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))