"""
Analytics module for the pilot logbook.

Aggregates logbook flights into dashboard statistics:
- Route and carrier rankings
- Monthly trend over the trailing six months
- Status distribution and on-time rate
- Heuristic time distribution
"""

from pilotlog.analytics.flight_analytics import (
    AnalyticsSummary,
    FlightAnalyticsAggregator,
    FlightRecord,
    aggregate_flights,
    coerce_hours,
)

__all__ = [
    'AnalyticsSummary',
    'FlightAnalyticsAggregator',
    'FlightRecord',
    'aggregate_flights',
    'coerce_hours',
]
