"""
Authentication helpers - password hashing and bearer tokens.

Passwords are stored as salted hashes from werkzeug.security. Tokens are
signed, timestamped payloads (itsdangerous) carrying the pilot identity, so
verifying a request needs no database round-trip.
"""

import logging
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from pilotlog.config import config

logger = logging.getLogger(__name__)

TOKEN_SALT = 'pilotlog-auth'


class AuthError(Exception):
    """Raised when a bearer token is missing, malformed, tampered or expired."""


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash or password is None:
        return False
    return check_password_hash(password_hash, password)


def _serializer(secret_key: Optional[str] = None) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key or config.auth.secret_key, salt=TOKEN_SALT)


def token_claims(pilot) -> dict:
    """Identity embedded in a token (and echoed by /auth/verify)."""
    return {
        'id': pilot.id,
        'email': pilot.email,
        'username': pilot.username,
        'firstName': pilot.first_name,
        'lastName': pilot.last_name,
        'role': pilot.role,
    }


def issue_token(pilot, secret_key: Optional[str] = None) -> str:
    """Sign a token for ``pilot``."""
    return _serializer(secret_key).dumps(token_claims(pilot))


def decode_token(
    token: str,
    secret_key: Optional[str] = None,
    max_age: Optional[int] = None,
) -> dict:
    """
    Verify ``token`` and return its claims.

    Raises AuthError if the signature is invalid or the token is older
    than ``max_age`` seconds (default from config).
    """
    if not token:
        raise AuthError('Access token required')

    if max_age is None:
        max_age = config.auth.token_max_age_seconds

    try:
        return _serializer(secret_key).loads(token, max_age=max_age)
    except SignatureExpired as e:
        logger.info(f'Rejected expired token: {e}')
        raise AuthError('Token expired') from e
    except BadSignature as e:
        logger.warning(f'Rejected invalid token: {e}')
        raise AuthError('Invalid token') from e


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header."""
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        return parts[1]
    return None
