"""
Authentication API endpoints.

Provides endpoints for:
- POST /auth/register - Create a pilot account
- POST /auth/login - Exchange credentials for a bearer token
- GET /auth/verify - Check a token and echo its identity
- GET /auth/profile - Current pilot's profile
- POST /auth/logout - Record a logout (tokens are dropped client-side)

Also exports ``token_required``, the decorator every protected endpoint uses.
"""

import logging
from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, g, jsonify, request
from sqlalchemy import or_, select

from pilotlog.config import config
from pilotlog.models import LicenseType, Pilot, PilotRole, SessionLocal, get_session
from pilotlog.services.audit import record_audit_log
from pilotlog.services.auth import (
    AuthError,
    bearer_token,
    decode_token,
    hash_password,
    issue_token,
    verify_password,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

VALID_LICENSE_TYPES = {t.value for t in LicenseType}


def token_required(view):
    """
    Require a valid bearer token.

    Missing token -> 401, invalid or expired token -> 403. On success the
    token claims are available as ``flask.g.user``.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = bearer_token(request.headers.get('Authorization'))
        if not token:
            return jsonify({'message': 'Access token required'}), 401

        try:
            g.user = decode_token(token)
        except AuthError:
            return jsonify({'message': 'Invalid or expired token'}), 403

        return view(*args, **kwargs)

    return wrapper


def _error(message: str, status: int):
    return jsonify({'success': False, 'message': message}), status


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Register a new pilot.

    Body: {email, password, username, firstName, lastName,
           licenseNumber?, licenseType?}

    Emails listed in ADMIN_EMAILS get the admin role.
    """
    data = request.get_json(silent=True) or {}

    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    username = (data.get('username') or '').strip()
    first_name = (data.get('firstName') or '').strip()
    last_name = (data.get('lastName') or '').strip()
    license_number = data.get('licenseNumber') or None
    license_type = data.get('licenseType') or LicenseType.PPL.value

    if not all([email, password, username, first_name, last_name]):
        return _error('Email, password, username, first name, and last name are required', 400)

    if len(password) < config.auth.min_password_length:
        return _error(
            f'Password must be at least {config.auth.min_password_length} characters long', 400
        )

    if license_type not in VALID_LICENSE_TYPES:
        return _error(f'License type must be one of {", ".join(sorted(VALID_LICENSE_TYPES))}', 400)

    role = PilotRole.ADMIN.value if config.auth.is_admin_email(email) else PilotRole.PILOT.value

    with get_session() as session:
        existing = session.execute(
            select(Pilot.id).where(or_(Pilot.email == email, Pilot.username == username))
        ).first()
        if existing:
            return _error('Pilot with this email or username already exists', 400)

        pilot = Pilot(
            email=email,
            password=hash_password(password),
            username=username,
            first_name=first_name,
            last_name=last_name,
            license_number=license_number,
            license_type=license_type,
            role=role,
        )
        session.add(pilot)
        session.flush()

    logger.info(f'Registered pilot {pilot.id} ({email}) as {role}')
    record_audit_log('registered', 'pilot', pilot.id, email, {'message': 'New pilot account created'})

    return jsonify({
        'success': True,
        'message': 'Pilot account created successfully',
        'token': issue_token(pilot),
        'pilot': {
            'id': pilot.id,
            'email': pilot.email,
            'username': pilot.username,
            'firstName': pilot.first_name,
            'lastName': pilot.last_name,
            'licenseNumber': pilot.license_number,
            'licenseType': pilot.license_type,
            'role': pilot.role,
        },
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Log in with email and password.

    Only active accounts can log in. Updates last_login on success.
    """
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return _error('Email and password are required', 400)

    with get_session() as session:
        pilot = session.execute(
            select(Pilot).where(Pilot.email == email, Pilot.is_active.is_(True))
        ).scalars().first()

        if pilot is None or not verify_password(pilot.password, password):
            logger.info(f'Failed login attempt for {email}')
            return _error('Invalid email or password', 401)

        pilot.last_login = datetime.now(timezone.utc)

    record_audit_log('login', 'pilot', pilot.id, pilot.email, {'message': 'Pilot logged in successfully'})

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'token': issue_token(pilot),
        'pilot': pilot.to_dict(),
    })


@auth_bp.route('/verify', methods=['GET'])
@token_required
def verify():
    """Confirm the token is valid and return the identity it carries."""
    return jsonify({
        'success': True,
        'message': 'Token is valid',
        'pilot': {key: g.user.get(key) for key in ('id', 'email', 'username', 'firstName', 'lastName', 'role')},
    })


@auth_bp.route('/profile', methods=['GET'])
@token_required
def profile():
    """Current pilot's profile from the database."""
    with SessionLocal() as session:
        pilot = session.get(Pilot, g.user.get('id'))

    if pilot is None:
        return _error('Pilot not found', 404)

    return jsonify({'success': True, 'pilot': pilot.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@token_required
def logout():
    """Record the logout; the client discards its token."""
    record_audit_log('logout', 'pilot', g.user.get('id'), g.user.get('email'), {'message': 'Pilot logged out'})
    return jsonify({'success': True, 'message': 'Logged out successfully'})
