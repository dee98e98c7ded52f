"""Random password generation for new roles."""

from __future__ import annotations

import secrets
import string

from src.constants import GENERATED_PASSWORD_LENGTH

_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Cryptographically random alphanumeric password."""
    if length < 1:
        raise ValueError("Password length must be positive.")
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))
