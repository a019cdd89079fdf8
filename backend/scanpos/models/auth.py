from __future__ import annotations

from ..extensions import db
from scanpos.time_utils import utcnow


ROLE_ADMIN = "ADMIN"
ROLE_STAFF = "STAFF"
STAFF_ROLES = (ROLE_ADMIN, ROLE_STAFF)


class StaffProfile(db.Model):
    """
    Staff identity as seen by the POS.

    Credentials live with the identity provider; this row carries only what
    the POS needs for attribution and role gating.
    """
    __tablename__ = "staff_profiles"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_staff_profiles_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)
    display_name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_STAFF)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)


class AccessToken(db.Model):
    """
    Bearer token issued for a staff member.

    Only the SHA-256 hash is stored; the plaintext is shown once at issue time.
    """
    __tablename__ = "access_tokens"
    __table_args__ = (
        db.UniqueConstraint("token_hash", name="uq_access_tokens_hash"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff_profiles.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    is_revoked = db.Column(db.Boolean, nullable=False, default=False)

    staff = db.relationship("StaffProfile", backref=db.backref("access_tokens", lazy=True))
