# Overview: Vendor login and bearer-token sessions.

"""
Session Token Management Service

There is a single vendor account whose password comes from
Config.VENDOR_PASSWORD. Logging in issues a random token; only its SHA-256
is stored.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout of Config.SESSION_TTL_HOURS (12h by default)
- Revocable on logout
- Password compared in constant time
"""

import hashlib
import hmac
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import VendorSession
from smartseller.time_utils import utcnow


class InvalidCredentials(Exception):
    pass


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def session_ttl() -> timedelta:
    return timedelta(hours=int(current_app.config.get("SESSION_TTL_HOURS", 12)))


def check_password(password) -> bool:
    expected = str(current_app.config.get("VENDOR_PASSWORD") or "")
    if not isinstance(password, str) or not expected:
        return False
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def login(
    password,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[VendorSession, str]:
    """
    Verify the vendor password and open a session.

    Returns (session_record, plaintext_token).
    Raises InvalidCredentials on a wrong password.
    """
    if not check_password(password):
        current_app.logger.warning("Failed vendor login from %s", ip_address or "unknown")
        raise InvalidCredentials("Invalid credentials")

    plaintext_token = generate_token()
    now = utcnow()

    session = VendorSession(
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + session_ttl(),
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    try:
        db.session.add(session)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Vendor session %s opened", session.id)
    return session, plaintext_token


def validate_session(token: str) -> VendorSession | None:
    """
    Return the live session for ``token`` or None if it is unknown,
    revoked or expired. Updates last_used_at on success.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(VendorSession).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    session.last_used_at = now
    db.session.commit()
    return session


def revoke_session(token: str, reason: str = "Vendor logout") -> bool:
    """Returns True if a live session was revoked, False if none matched."""
    session = db.session.query(VendorSession).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()
    return True


def cleanup_expired_sessions() -> int:
    """Delete sessions that are revoked or past expiry. Returns rows removed."""
    now = utcnow()
    deleted = (
        db.session.query(VendorSession)
        .filter((VendorSession.expires_at < now) | (VendorSession.is_revoked.is_(True)))
        .delete(synchronize_session=False)
    )
    db.session.commit()
    current_app.logger.info("Removed %d stale vendor sessions", deleted)
    return deleted
