"""
API module for the pilot logbook.

Provides REST endpoints for:
- Authentication (register, login, profile)
- Logbook flights and flight lookups
- Analytics
- Audit trail and backups
- Pilot schedules
"""

from pilotlog.api.auth import auth_bp, token_required
from pilotlog.api.flights import flights_bp
from pilotlog.api.analytics import analytics_bp
from pilotlog.api.audit import audit_bp
from pilotlog.api.schedules import schedules_bp

__all__ = [
    'auth_bp',
    'flights_bp',
    'analytics_bp',
    'audit_bp',
    'schedules_bp',
    'token_required',
]
