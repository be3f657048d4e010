"""
Analytics API endpoint.

Provides:
- GET /analytics - Dashboard statistics over the caller's logbook
  (every pilot's flights for admins)
"""

import logging
import time

from flask import Blueprint, g, jsonify

from pilotlog.analytics import FlightAnalyticsAggregator
from pilotlog.api.auth import token_required
from pilotlog.models import DetailedFlight, SessionLocal, flights_visible_to
from pilotlog.services.audit import record_audit_log

logger = logging.getLogger(__name__)

analytics_bp = Blueprint('analytics', __name__)


@analytics_bp.route('/analytics', methods=['GET'])
@token_required
def get_analytics():
    """
    Aggregate the visible flights into an analytics summary.

    Response body is the summary itself (totalFlights, totalHours,
    monthlyTrend, routeAnalysis, ...).
    """
    start_time = time.perf_counter()
    user = g.user
    logger.info(f'Fetching analytics for user: {user.get("email")}')

    stmt = flights_visible_to(user).order_by(DetailedFlight.flight_date.desc())
    with SessionLocal() as session:
        flights = session.execute(stmt).scalars().all()

    summary = FlightAnalyticsAggregator().aggregate(flights)

    query_time_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f'Processed analytics for {len(flights)} flights in {query_time_ms:.1f}ms')

    record_audit_log(
        'analytics_viewed',
        'system',
        'analytics',
        user.get('email'),
        {'message': 'Analytics data requested', 'flightCount': len(flights)},
    )

    return jsonify(summary.to_dict())
