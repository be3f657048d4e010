"""
Audit and maintenance API endpoints.

Provides endpoints for:
- GET /audit-logs - Paginated audit trail, newest first
- POST /perform-backup - Snapshot all flights into the backups table
"""

import logging
import math
from datetime import datetime, timezone

from flask import Blueprint, g, jsonify, request
from sqlalchemy import func, select

from pilotlog.api.auth import token_required
from pilotlog.models import AuditLog, Backup, DetailedFlight, SessionLocal, get_session
from pilotlog.services.audit import record_audit_log

logger = logging.getLogger(__name__)

audit_bp = Blueprint('audit', __name__)


def _positive_int(value, default: int, maximum: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return min(max(number, 1), maximum)


@audit_bp.route('/audit-logs', methods=['GET'])
@token_required
def list_audit_logs():
    """
    Paginated audit trail.

    Query parameters:
    - page: 1-based page number (default 1)
    - limit: rows per page (default 20, max 200)
    - filter: entity to show ('pilot', 'flight', 'system', ...) or 'all'
    """
    page = _positive_int(request.args.get('page'), 1, 10_000)
    limit = _positive_int(request.args.get('limit'), 20, 200)
    entity = request.args.get('filter', 'all')

    stmt = select(AuditLog)
    count_stmt = select(func.count()).select_from(AuditLog)
    if entity != 'all':
        stmt = stmt.where(AuditLog.entity == entity)
        count_stmt = count_stmt.where(AuditLog.entity == entity)

    stmt = stmt.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
    stmt = stmt.limit(limit).offset((page - 1) * limit)

    with SessionLocal() as session:
        total = session.execute(count_stmt).scalar_one()
        logs = session.execute(stmt).scalars().all()

    return jsonify({
        'logs': [log.to_dict() for log in logs],
        'pagination': {
            'currentPage': page,
            'totalPages': math.ceil(total / limit),
            'totalItems': total,
            'itemsPerPage': limit,
        },
    })


@audit_bp.route('/perform-backup', methods=['POST'])
@token_required
def perform_backup():
    """Store a JSON snapshot of every logbook flight."""
    with get_session() as session:
        flights = session.execute(select(DetailedFlight)).scalars().all()
        backup = Backup(data={
            'flights': [f.to_dict() for f in flights],
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'backupType': 'manual',
        })
        session.add(backup)

    logger.info(f'Manual backup of {len(flights)} flights by {g.user.get("email")}')
    record_audit_log('backup', 'system', 'backup', g.user.get('email'), {'message': 'Manual backup performed'})

    return jsonify({'success': True, 'message': 'Backup completed successfully'})
