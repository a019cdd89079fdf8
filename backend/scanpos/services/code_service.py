# Overview: Public sale code generation and collision classification.

"""
Sale codes are what a customer reads out or types at the counter, so they
are kept to six digits with a non-zero leading digit (100000-999999).

The code space is small. Uniqueness is NOT checked here: the partial unique
index on sales.public_code (PENDING rows only) rejects a colliding insert and
the caller retries with a fresh code, up to MAX_CODE_ATTEMPTS.
"""

from __future__ import annotations

import secrets

from sqlalchemy.exc import IntegrityError


CODE_LENGTH = 6
CODE_MIN = 10 ** (CODE_LENGTH - 1)
CODE_MAX = 10 ** CODE_LENGTH - 1
MAX_CODE_ATTEMPTS = 6

PENDING_CODE_INDEX = "uq_sales_pending_public_code"


def generate_code() -> str:
    """Uniformly random 6-digit code."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def is_code_collision(exc: IntegrityError) -> bool:
    """
    True if the integrity failure is the pending public_code uniqueness index.

    SQLite reports "UNIQUE constraint failed: sales.public_code"; PostgreSQL
    names the index in its message.
    """
    message = str(getattr(exc, "orig", exc)).lower()
    if PENDING_CODE_INDEX in message:
        return True
    return "public_code" in message and ("unique" in message or "duplicate" in message)
