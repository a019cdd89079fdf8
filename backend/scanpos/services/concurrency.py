# Overview: Row locking and retry of transient lock errors around sale confirmation.

"""
Confirmation writes through a conditional bulk UPDATE, so there is no
optimistic version check to retry on. What can still fail transiently is the
database itself: SQLite reports "database is locked" while another writer
holds the file, PostgreSQL aborts one side of a deadlock. Both surface as
OperationalError and are worth another attempt; anything else is a bug or a
business error and propagates immediately.
"""

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError

from ..extensions import db


DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_SECONDS = 0.1


def lock_for_update(query):
    """SELECT ... FOR UPDATE on PostgreSQL; SQLite ignores it and serializes writers itself."""
    return query.with_for_update()


def _retry_settings() -> tuple[int, float]:
    attempts = int(current_app.config.get("DB_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS))
    backoff = float(current_app.config.get("DB_RETRY_BACKOFF_SECONDS", DEFAULT_RETRY_BACKOFF_SECONDS))
    if attempts < 1:
        raise ValueError(f"DB_RETRY_ATTEMPTS must be at least 1, got {attempts}")
    return attempts, max(backoff, 0.0)


def run_with_retry(func):
    """
    Call func() until it succeeds or the lock-retry budget is spent.

    The session is rolled back before every retry, so func must start its
    own reads from scratch. Budget and backoff come from DB_RETRY_ATTEMPTS
    and DB_RETRY_BACKOFF_SECONDS (doubling per attempt).
    """
    attempts, backoff = _retry_settings()
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except OperationalError as exc:
            db.session.rollback()
            if attempt == attempts:
                current_app.logger.error("Database still locked after %s attempts: %s", attempts, exc.orig)
                raise
            current_app.logger.warning("Database locked (attempt %s/%s), retrying", attempt, attempts)
            if backoff:
                time.sleep(backoff * (2 ** (attempt - 1)))
