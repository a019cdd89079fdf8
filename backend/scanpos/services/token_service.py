# Overview: Bearer token issue and resolution for staff principals.

"""
Access tokens stand in for the identity provider's credentials.

Tokens are 32 random bytes (hex), stored only as a SHA-256 hash, and carry
an absolute expiry. Resolution fails closed: unknown, revoked or expired
tokens and inactive staff all resolve to None.
"""

import hashlib
import secrets
from datetime import timedelta

from ..extensions import db
from ..models import AccessToken, StaffProfile
from scanpos.time_utils import utcnow


DEFAULT_TOKEN_TTL = timedelta(hours=12)


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token(staff_id: int, ttl: timedelta = DEFAULT_TOKEN_TTL) -> tuple[AccessToken, str]:
    """
    Issue a token for an active staff member.

    Returns (record, plaintext_token); only the hash is persisted.
    """
    staff = db.session.get(StaffProfile, staff_id)
    if not staff:
        raise ValueError("Staff member not found")
    if not staff.is_active:
        raise ValueError("Staff member is not active")

    plaintext = generate_token()
    now = utcnow()
    record = AccessToken(
        staff_id=staff.id,
        token_hash=hash_token(plaintext),
        created_at=now,
        expires_at=now + ttl,
        is_revoked=False,
    )
    db.session.add(record)
    db.session.commit()
    return record, plaintext


def resolve_principal(token: str) -> StaffProfile | None:
    """Map a bearer token to its staff member, or None."""
    if not token:
        return None

    record = db.session.query(AccessToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not record:
        return None

    now = utcnow()
    if record.expires_at < now:
        return None

    staff = record.staff
    if not staff or not staff.is_active:
        return None

    record.last_used_at = now
    db.session.commit()
    return staff


def revoke_all_for_staff(staff_id: int) -> int:
    tokens = db.session.query(AccessToken).filter_by(staff_id=staff_id, is_revoked=False).all()
    for record in tokens:
        record.is_revoked = True
    db.session.commit()
    return len(tokens)
