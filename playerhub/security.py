"""
Password hashing and session cookie signing.
"""

import secrets

import bcrypt
from jose import jws
from jose.exceptions import JOSEError


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    # bcrypt has a 72-byte limit, so truncate if needed
    password_bytes = password.encode('utf-8')[:72]
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    # bcrypt has a 72-byte limit, so truncate if needed (must match hash_password)
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# Verified against when the username is unknown, so both failure paths cost
# one bcrypt comparison.
DUMMY_PASSWORD_HASH = hash_password(secrets.token_hex(16))


def new_session_id() -> str:
    """Generate an opaque, unguessable session id."""
    return secrets.token_urlsafe(32)


def sign_session_id(sid: str, secret_key: str, algorithm: str = "HS256") -> str:
    """
    Sign a session id for the cookie.

    Args:
        sid: Opaque session id
        secret_key: Secret key for signing

    Returns:
        Compact JWS string carrying the session id
    """
    return jws.sign(sid.encode("utf-8"), secret_key, algorithm=algorithm)


def unsign_session_id(value: str, secret_key: str, algorithm: str = "HS256") -> str | None:
    """
    Verify a signed cookie value.

    Returns:
        The session id, or None if the signature is invalid
    """
    try:
        payload = jws.verify(value, secret_key, algorithms=[algorithm])
    except JOSEError:
        return None
    return payload.decode("utf-8")
