"""
Schedule import - loads pilot duty rosters from uploaded files.

Expected CSV format (header row required):
    name,email,flightDate,flightTime,flightNumber,flightName,standbyTime

Each row is matched to a pilot by email or username. Matched rows become
PilotSchedule records and trigger a notification; rows for unknown pilots
or with unreadable values are skipped without aborting the import.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import IO, Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError

from pilotlog.models import Pilot, PilotSchedule, get_session
from pilotlog.services.audit import record_audit_log, SYSTEM_USER

logger = logging.getLogger(__name__)

CSV_MIMETYPES = {'text/csv', 'application/csv', 'application/vnd.ms-excel'}
PDF_MIMETYPE = 'application/pdf'


class ScheduleImportError(Exception):
    """Raised for uploads that can't be processed at all."""


@dataclass
class ImportResult:
    """Outcome of one schedule upload."""
    rows: int = 0
    created: int = 0
    skipped: int = 0
    message: str = ''

    def to_dict(self) -> dict:
        return {
            'rows': self.rows,
            'created': self.created,
            'skipped': self.skipped,
            'message': self.message,
        }


def read_schedule_csv(stream: IO[str]) -> List[dict]:
    """Read CSV rows as dicts with whitespace-stripped keys and values."""
    reader = csv.DictReader(stream)
    rows = []
    for row in reader:
        rows.append({
            (key or '').strip(): (value or '').strip() if isinstance(value, str) else value
            for key, value in row.items()
        })
    return rows


def _parse_time(value: str) -> time:
    return time.fromisoformat(value.strip())


def _parse_standby(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.strip().replace(' ', 'T', 1))


def send_schedule_notification(pilot: Pilot, schedule: PilotSchedule) -> None:
    """Notify a pilot of a new assignment (logged and audited)."""
    logger.info(f'Sending notification to pilot {pilot.email}')
    logger.info(
        f'Flight {schedule.flight_number} on {schedule.flight_date} at {schedule.flight_time}'
    )
    record_audit_log(
        'notification_sent',
        'pilot',
        pilot.id,
        SYSTEM_USER,
        {
            'message': 'Scheduling notification sent',
            'flight': schedule.flight_number,
            'date': schedule.flight_date.isoformat(),
            'time': schedule.flight_time.strftime('%H:%M:%S'),
        },
    )


def import_schedule_rows(rows: Iterable[dict], uploaded_by: str) -> ImportResult:
    """Create schedules for each row whose pilot exists."""
    result = ImportResult()

    for row in rows:
        result.rows += 1
        email = row.get('email') or ''
        name = row.get('name') or ''

        try:
            schedule_kwargs = dict(
                flight_date=date.fromisoformat(row.get('flightDate') or ''),
                flight_time=_parse_time(row.get('flightTime') or ''),
                flight_number=(row.get('flightNumber') or '').strip(),
                flight_name=row.get('flightName') or None,
                standby_time=_parse_standby(row.get('standbyTime')),
            )
            if not schedule_kwargs['flight_number']:
                raise ValueError('flightNumber is required')

            with get_session() as session:
                pilot = session.execute(
                    select(Pilot).where(or_(Pilot.email == email, Pilot.username == name))
                ).scalars().first()

                if pilot is None:
                    logger.info(f'No pilot matches row {result.rows} ({email or name}), skipping')
                    result.skipped += 1
                    continue

                schedule = PilotSchedule(pilot_id=pilot.id, **schedule_kwargs)
                session.add(schedule)

        except (ValueError, SQLAlchemyError) as e:
            logger.error(f'Schedule processing error on row {result.rows}: {e}')
            result.skipped += 1
            continue

        result.created += 1
        send_schedule_notification(pilot, schedule)
        record_audit_log(
            'schedule_created',
            'pilot_schedule',
            pilot.id,
            uploaded_by,
            {
                'message': 'Schedule created from uploaded file',
                'flight': schedule.flight_number,
                'date': schedule.flight_date.isoformat(),
            },
        )

    logger.info(
        f'Schedule import by {uploaded_by}: {result.created} created, '
        f'{result.skipped} skipped of {result.rows} rows'
    )
    return result


def import_schedule_file(
    stream: IO[bytes],
    mimetype: Optional[str],
    uploaded_by: str,
    filename: Optional[str] = None,
) -> ImportResult:
    """
    Import an uploaded roster file.

    CSV files are parsed and imported; PDF uploads are accepted but not
    parsed. Anything else raises ScheduleImportError.
    """
    mimetype = (mimetype or '').lower()
    is_csv = mimetype in CSV_MIMETYPES or (filename or '').lower().endswith('.csv')

    if is_csv:
        try:
            text = io.TextIOWrapper(stream, encoding='utf-8-sig', errors='replace')
            rows = read_schedule_csv(text)
        except csv.Error as e:
            raise ScheduleImportError(f'Unreadable CSV file: {e}') from e
        result = import_schedule_rows(rows, uploaded_by)
        result.message = f'Processed {result.rows} schedules'
        return result

    if mimetype == PDF_MIMETYPE:
        # TODO: extract roster tables from PDF uploads (needs a PDF parsing library)
        logger.info('PDF schedule uploaded; PDF parsing is not supported yet')
        return ImportResult(message='PDF processing would be implemented in production')

    raise ScheduleImportError('Unsupported file type')
