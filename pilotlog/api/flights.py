"""
Logbook flight API endpoints.

Provides endpoints for:
- POST /save-flight - Add a flight to the caller's logbook
- GET /logs - Logbook rows (own flights, or all for admins)
- GET /flights-by-date - Flights on a date (database, then AviationStack, then mock data)
- GET /fetch-detailed-flights - Store the latest AviationStack flights
- GET /search-flight - Find one flight by IATA code and date
- GET /flight/<flight_iata> - First stored flight with that IATA code
"""

import logging
from datetime import date, datetime
from typing import List, Optional

from flask import Blueprint, g, jsonify, request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from pilotlog.analytics.flight_analytics import coerce_hours
from pilotlog.api.auth import token_required
from pilotlog.models import DetailedFlight, SessionLocal, flights_visible_to, get_session
from pilotlog.services.audit import record_audit_log
from pilotlog.services.flight_info import FlightInfo, flight_info_service, generate_mock_flights

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__)

# Free-text columns copied from the request body as-is
TEXT_FIELDS = (
    'flight_iata', 'flight_icao', 'flight_number', 'flight_status',
    'departure_airport', 'departure_iata', 'departure_icao',
    'arrival_airport', 'arrival_iata', 'arrival_icao',
    'airline_name', 'airline_iata',
)


def _parse_date(value) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def _persist(flights: List[FlightInfo]) -> None:
    """Store looked-up flights for reuse; failures are logged only."""
    try:
        with get_session() as session:
            session.add_all(DetailedFlight(**f.to_row()) for f in flights)
    except SQLAlchemyError as e:
        logger.error(f'Failed to store looked-up flights: {e}')


def _mock_response(flight_date: date):
    flights = generate_mock_flights(flight_date)
    return jsonify([{'id': i + 1, **f.to_dict()} for i, f in enumerate(flights)])


@flights_bp.route('/save-flight', methods=['POST'])
@token_required
def save_flight():
    """
    Save a flight to the caller's logbook.

    Body uses the logbook column names (flight_iata, flight_date,
    departure_iata, duration_hours, ...). Non-numeric durations become 0.
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({'success': False, 'message': 'JSON object body required'}), 400

    try:
        flight_date = _parse_date(data.get('flight_date'))
        departure_scheduled = _parse_datetime(data.get('departure_scheduled'))
        arrival_scheduled = _parse_datetime(data.get('arrival_scheduled'))
    except ValueError as e:
        return jsonify({'success': False, 'message': f'Invalid date: {e}'}), 400

    duration = coerce_hours(data.get('duration_hours'))

    flight = DetailedFlight(
        flight_date=flight_date,
        departure_scheduled=departure_scheduled,
        arrival_scheduled=arrival_scheduled,
        duration_hours=duration,
        created_by=g.user.get('id'),
        **{key: data.get(key) for key in TEXT_FIELDS},
    )

    with get_session() as session:
        session.add(flight)
        session.flush()

    logger.info(f'Saved flight {flight.id} ({flight.flight_iata}) for {g.user.get("email")}')

    record_audit_log(
        'created',
        'flight',
        flight.id,
        g.user.get('email'),
        {'message': 'Flight saved to logbook'},
        {
            'flight_iata': flight.flight_iata,
            'departure_iata': flight.departure_iata,
            'arrival_iata': flight.arrival_iata,
            'flight_date': flight_date.isoformat() if flight_date else None,
            'duration_hours': duration,
        },
    )

    return jsonify({
        'success': True,
        'message': 'Flight saved successfully',
        'id': flight.id,
    })


@flights_bp.route('/logs', methods=['GET'])
@token_required
def get_logs():
    """Logbook rows, newest first."""
    stmt = flights_visible_to(g.user).order_by(
        DetailedFlight.flight_date.desc(),
        DetailedFlight.departure_scheduled.desc(),
    )

    with SessionLocal() as session:
        flights = session.execute(stmt).scalars().all()

    logger.debug(f'Fetched {len(flights)} logbook rows for {g.user.get("email")}')
    return jsonify([f.to_log_dict() for f in flights])


@flights_bp.route('/flights-by-date', methods=['GET'])
@token_required
def flights_by_date():
    """
    Flights operating on a date.

    Query parameters:
    - date: YYYY-MM-DD (required)

    Looks in the database first, then AviationStack (results are stored),
    and finally falls back to generated mock flights so the UI always
    has something to show.
    """
    raw_date = request.args.get('date')
    if not raw_date:
        return jsonify({'message': 'Date parameter is required'}), 400
    try:
        flight_date = date.fromisoformat(raw_date)
    except ValueError:
        return jsonify({'message': 'Date must be YYYY-MM-DD'}), 400

    logger.info(f'Fetching flights for date: {flight_date} (User: {g.user.get("email")})')

    try:
        with SessionLocal() as session:
            stored = session.execute(
                select(DetailedFlight)
                .where(DetailedFlight.flight_date == flight_date)
                .order_by(DetailedFlight.departure_scheduled.asc())
            ).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f'Database error, returning mock data: {e}')
        return _mock_response(flight_date)

    if stored:
        logger.info(f'Found {len(stored)} flights in database')
        return jsonify([f.to_dict() for f in stored])

    api_flights = flight_info_service.flights_by_date(flight_date)
    if api_flights:
        _persist(api_flights)
        return jsonify([f.to_dict() for f in api_flights])

    logger.warning(f'No flight data for {flight_date}, using mock flights')
    return _mock_response(flight_date)


@flights_bp.route('/fetch-detailed-flights', methods=['GET'])
@token_required
def fetch_detailed_flights():
    """
    Pull the latest AviationStack flights (up to 5) into the database.

    Returns 400 when no API key is configured.
    """
    if not flight_info_service.is_configured:
        return jsonify({'message': 'API key not configured'}), 400

    flights = flight_info_service.latest_flights(limit=5)
    if flights:
        _persist(flights)

    logger.info(f'Stored {len(flights)} fetched flights (User: {g.user.get("email")})')
    return jsonify({'message': 'Flights stored successfully', 'count': len(flights)})


@flights_bp.route('/search-flight', methods=['GET'])
@token_required
def search_flight():
    """
    Find a flight by IATA code on a date.

    Query parameters:
    - flight_iata: e.g. AA100 (required)
    - date: YYYY-MM-DD (required)

    Returns a list (empty when nothing is found).
    """
    flight_iata = (request.args.get('flight_iata') or '').strip().upper()
    raw_date = request.args.get('date')

    if not flight_iata or not raw_date:
        return jsonify({'message': 'Flight IATA code and date are required'}), 400
    try:
        flight_date = date.fromisoformat(raw_date)
    except ValueError:
        return jsonify({'message': 'Date must be YYYY-MM-DD'}), 400

    logger.info(f'Searching for flight: {flight_iata} on {flight_date} (User: {g.user.get("email")})')

    with SessionLocal() as session:
        stored = session.execute(
            select(DetailedFlight)
            .where(
                DetailedFlight.flight_iata == flight_iata,
                DetailedFlight.flight_date == flight_date,
            )
            .order_by(DetailedFlight.departure_scheduled.asc())
        ).scalars().all()

    if stored:
        return jsonify([f.to_dict() for f in stored])

    found = flight_info_service.search_flight(flight_iata, flight_date)
    if found:
        _persist(found[:1])
        return jsonify([found[0].to_dict()])

    logger.info(f'Flight {flight_iata} not found')
    return jsonify([])


@flights_bp.route('/flight/<flight_iata>', methods=['GET'])
@token_required
def get_flight(flight_iata: str):
    """First stored flight with the given IATA code."""
    with SessionLocal() as session:
        flight = session.execute(
            select(DetailedFlight).where(DetailedFlight.flight_iata == flight_iata)
        ).scalars().first()

    if flight is None:
        return jsonify({'message': 'Flight not found'}), 404

    return jsonify(flight.to_dict())
