"""
Audit trail writer.

Every significant action (logins, saved flights, backups, imports) is
appended to audit_logs. Writes are best-effort: a failed audit write is
logged and never fails the request that triggered it.
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from pilotlog.models import AuditLog, get_session

logger = logging.getLogger(__name__)

SYSTEM_USER = 'system'


def record_audit_log(
    action: str,
    entity: str,
    entity_id: Any,
    user: str = SYSTEM_USER,
    details: Optional[dict] = None,
    flight_details: Optional[dict] = None,
) -> Optional[AuditLog]:
    """
    Append an audit row.

    Args:
        action: What happened ('login', 'created', 'backup', ...)
        entity: Kind of thing affected ('pilot', 'flight', 'system', ...)
        entity_id: Identifier of the affected thing
        user: Acting user's email, or 'system'
        details: Free-form JSON details
        flight_details: Flight snapshot for flight-related actions

    Returns the stored row, or None if the write failed.
    """
    entry = AuditLog(
        action=action,
        entity=entity,
        entity_id=str(entity_id),
        user_id=user,
        user_name='System' if user == SYSTEM_USER else 'Pilot User',
        details=details or {},
        flight_details=flight_details,
    )

    try:
        with get_session() as session:
            session.add(entry)
    except SQLAlchemyError as e:
        logger.error(f'Audit log write failed ({action} {entity}:{entity_id}): {e}')
        return None

    logger.debug(f'Audit: {action} {entity}:{entity_id} by {user}')
    return entry
