# Overview: Service-layer operations for maintenance; releases codes held by abandoned scan sales.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import Sale
from ..models.sales import SOURCE_CUSTOMER_SCAN, STATUS_CANCELLED, STATUS_PENDING
from scanpos.time_utils import utcnow


def _stale_pending_filter(cutoff):
    return (
        Sale.status == STATUS_PENDING,
        Sale.source == SOURCE_CUSTOMER_SCAN,
        Sale.created_at < cutoff,
    )


def count_stale_pending_sales(*, older_than_minutes: int) -> int:
    cutoff = utcnow() - timedelta(minutes=older_than_minutes)
    return db.session.query(Sale).filter(*_stale_pending_filter(cutoff)).count()


def cancel_stale_pending_sales(*, older_than_minutes: int) -> int:
    """
    Move PENDING scan sales older than the cutoff to CANCELLED.

    Cancelled sales drop out of the pending code index, so their codes can be
    issued again. The status guard in the UPDATE keeps a confirmation that
    lands at the same moment from being overwritten.
    """
    if older_than_minutes <= 0:
        raise ValueError("older_than_minutes must be positive")

    now = utcnow()
    cutoff = now - timedelta(minutes=older_than_minutes)
    cancelled = db.session.query(Sale).filter(*_stale_pending_filter(cutoff)).update(
        {
            Sale.status: STATUS_CANCELLED,
            Sale.cancelled_at: now,
            Sale.version_id: Sale.version_id + 1,
        },
        synchronize_session=False,
    )
    db.session.commit()
    return cancelled
