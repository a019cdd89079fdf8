# Overview: Service-layer operations for staff profiles (identity collaborator).

"""
Staff profiles mirror accounts held by the identity provider. The POS only
needs a stable id for attribution, a role for gating admin routes, and an
active flag so a deactivated account stops working immediately.
"""

import re

from ..extensions import db
from ..models import StaffProfile
from ..models.auth import STAFF_ROLES, ROLE_STAFF


_WHITESPACE_RE = re.compile(r"\s+")


class StaffError(ValueError):
    pass


def normalize_username(username: str) -> str:
    """Trim, lower-case and strip inner whitespace ("Ama K" -> "amak")."""
    return _WHITESPACE_RE.sub("", (username or "").strip().lower())


def staff_email_from_username(username: str) -> str:
    """Login email the identity provider uses for a staff username."""
    return f"{normalize_username(username)}@staff.local"


def create_staff(username: str, role: str = ROLE_STAFF, display_name: str | None = None) -> StaffProfile:
    normalized = normalize_username(username)
    if not normalized:
        raise StaffError("Username is required")

    role = (role or "").strip().upper()
    if role not in STAFF_ROLES:
        raise StaffError(f"Role must be one of: {', '.join(STAFF_ROLES)}")

    existing = db.session.query(StaffProfile).filter_by(username=normalized).first()
    if existing:
        raise StaffError(f"Username '{normalized}' already exists")

    staff = StaffProfile(
        username=normalized,
        display_name=(display_name or "").strip() or None,
        role=role,
        is_active=True,
    )
    db.session.add(staff)
    db.session.commit()
    return staff


def get_staff_by_username(username: str) -> StaffProfile | None:
    return db.session.query(StaffProfile).filter_by(username=normalize_username(username)).first()


def set_active(staff_id: int, is_active: bool) -> StaffProfile:
    staff = db.session.get(StaffProfile, staff_id)
    if not staff:
        raise StaffError("Staff member not found")
    staff.is_active = is_active
    db.session.commit()
    return staff
