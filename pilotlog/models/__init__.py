"""
Database models for the pilot logbook.

Schema mirrors the logbook's relational layout:
1. pilots - accounts and roles
2. detailed_flights - logbook entries, scoped by created_by
3. audit_logs / backups - audit trail and manual snapshots
4. pilot_schedules - duties imported from roster files
"""

from pilotlog.models.base import Base, engine, SessionLocal, init_db, get_session
from pilotlog.models.pilot import Pilot, PilotRole, LicenseType
from pilotlog.models.flight import DetailedFlight, flights_visible_to
from pilotlog.models.audit_log import AuditLog, Backup
from pilotlog.models.schedule import PilotSchedule

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'init_db',
    'get_session',
    'Pilot',
    'PilotRole',
    'LicenseType',
    'DetailedFlight',
    'flights_visible_to',
    'AuditLog',
    'Backup',
    'PilotSchedule',
]
