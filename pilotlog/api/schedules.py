"""
Pilot schedule API endpoints.

Provides endpoints for:
- POST /upload-schedule - Import a roster file (multipart field 'scheduleFile')
- GET /pilot-schedules - Caller's schedules in date/time order
"""

import logging

from flask import Blueprint, g, jsonify, request
from sqlalchemy import select

from pilotlog.api.auth import token_required
from pilotlog.models import PilotSchedule, SessionLocal
from pilotlog.services.schedule_import import ScheduleImportError, import_schedule_file

logger = logging.getLogger(__name__)

schedules_bp = Blueprint('schedules', __name__)


@schedules_bp.route('/upload-schedule', methods=['POST'])
@token_required
def upload_schedule():
    """Import schedules from an uploaded CSV (PDF is accepted but not parsed)."""
    upload = request.files.get('scheduleFile')
    if upload is None or not upload.filename:
        return jsonify({'success': False, 'message': 'No file uploaded'}), 400

    try:
        result = import_schedule_file(
            upload.stream,
            upload.mimetype,
            uploaded_by=g.user.get('email'),
            filename=upload.filename,
        )
    except ScheduleImportError as e:
        logger.warning(f'Rejected schedule upload {upload.filename}: {e}')
        return jsonify({'success': False, 'message': str(e)}), 400

    return jsonify({'success': True, **result.to_dict()})


@schedules_bp.route('/pilot-schedules', methods=['GET'])
@token_required
def list_schedules():
    """Schedules assigned to the caller."""
    stmt = (
        select(PilotSchedule)
        .where(PilotSchedule.pilot_id == g.user.get('id'))
        .order_by(PilotSchedule.flight_date, PilotSchedule.flight_time)
    )
    with SessionLocal() as session:
        schedules = session.execute(stmt).scalars().all()

    return jsonify([s.to_dict() for s in schedules])
