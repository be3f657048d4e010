"""
Logbook analytics aggregation.

Turns a sequence of flight records into a single summary for the
analytics dashboard:

1. Scalar totals: flight count, hours, average flight time
2. Route grouping: frequency and average duration per DEP-ARR pair
3. Carrier grouping: flights and hours per airline code
4. Monthly trend: trailing six calendar months, zero-filled
5. Status distribution and on-time percentage
6. Time distribution: fixed-ratio split of total hours

Notes:
- No I/O and no shared state; the input is never mutated
- Malformed fields fall back to defaults, aggregation never raises
- Ties in the top-5 rankings keep first-seen order

Two fields are heuristics rather than measurements: the day/night/IFR/
cross-country split uses constant ratios of total hours, and airline
reliability is a random score in [85, 100). Inject ``rng`` and ``clock``
to make results reproducible.
"""

import logging
import math
import random
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

PLACEHOLDER = 'N/A'
UNKNOWN_AIRLINE = 'Unknown'

STATUS_KEYS = ('scheduled', 'active', 'completed', 'cancelled')
ON_TIME_STATUSES = ('completed', 'active')

MONTH_NAMES = (
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec',
)

# Share of total hours attributed to each category
TIME_DISTRIBUTION_RATIOS = {
    'day': 0.75,
    'night': 0.25,
    'ifr': 0.40,
    'cross_country': 0.60,
}

RELIABILITY_BASE = 85.0
RELIABILITY_SPAN = 15.0

# Enough significant digits to quantize any finite float (max ~1.8e308)
_DECIMAL_PRECISION = 400

# Leading number as accepted by a lenient float parser ("3.5h" -> 3.5)
_NUMBER_PREFIX_RE = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

def coerce_hours(value: Any) -> float:
    """
    Coerce a duration to a finite float.

    Numbers pass through, strings are parsed from their leading numeric
    part, everything else (None, junk, NaN, infinities, booleans) is 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float, Decimal, np.number)):
        try:
            number = float(value)
        except (TypeError, ValueError, InvalidOperation):
            return 0.0
    elif isinstance(value, str):
        match = _NUMBER_PREFIX_RE.match(value)
        if not match:
            return 0.0
        number = float(match.group(1))
    else:
        return 0.0

    return number if math.isfinite(number) else 0.0


def parse_flight_date(value: Any) -> Optional[date]:
    """Parse a date, datetime or ISO string; None if it can't be read."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def round_half_up(value: float, places: int) -> float:
    """Round to ``places`` decimals with half-up semantics (2.675 -> 2.68)."""
    if not math.isfinite(value):
        return 0.0
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Input record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlightRecord:
    """
    The subset of a logbook row the aggregator reads.

    Fields are stored as received; coercion happens during aggregation
    so a record can carry a string duration or an unparsed date.
    """
    flight_date: Any = None
    flight_status: Optional[str] = None
    departure_iata: Optional[str] = None
    arrival_iata: Optional[str] = None
    airline_iata: Optional[str] = None
    duration_hours: Any = None

    # (snake_case attribute, camelCase alias)
    _FIELDS = (
        ('flight_date', 'flightDate'),
        ('flight_status', 'flightStatus'),
        ('departure_iata', 'departureIata'),
        ('arrival_iata', 'arrivalIata'),
        ('airline_iata', 'airlineIata'),
        ('duration_hours', 'durationHours'),
    )

    @classmethod
    def from_mapping(cls, source: Any) -> 'FlightRecord':
        """
        Build a record from a dict, an ORM row or any attribute-bearing object.

        Accepts both snake_case (database) and camelCase (API) keys.
        """
        if isinstance(source, FlightRecord):
            return source

        values = {}
        for name, alias in cls._FIELDS:
            if isinstance(source, Mapping):
                value = source.get(name)
                if value is None:
                    value = source.get(alias)
            else:
                value = getattr(source, name, None)
                if value is None:
                    value = getattr(source, alias, None)
            values[name] = value
        return cls(**values)

    @property
    def hours(self) -> float:
        return coerce_hours(self.duration_hours)

    @property
    def route(self) -> str:
        departure = _text(self.departure_iata) or PLACEHOLDER
        arrival = _text(self.arrival_iata) or PLACEHOLDER
        return f'{departure}-{arrival}'

    @property
    def carrier(self) -> str:
        return _text(self.airline_iata) or UNKNOWN_AIRLINE

    @property
    def parsed_date(self) -> Optional[date]:
        return parse_flight_date(self.flight_date)


# ---------------------------------------------------------------------------
# Output value objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonthlyBucket:
    month: str
    flights: int = 0
    hours: float = 0.0

    def to_dict(self) -> dict:
        return {'month': self.month, 'flights': self.flights, 'hours': self.hours}


@dataclass(frozen=True)
class AircraftShare:
    """Flights per carrier code (reported as the aircraft 'type')."""
    aircraft_type: str
    count: int
    hours: float
    percentage: float

    def to_dict(self) -> dict:
        return {
            'type': self.aircraft_type,
            'count': self.count,
            'hours': self.hours,
            'percentage': self.percentage,
        }


@dataclass(frozen=True)
class RouteStat:
    route: str
    frequency: int
    avg_duration: float

    def to_dict(self) -> dict:
        return {
            'route': self.route,
            'frequency': self.frequency,
            'avgDuration': self.avg_duration,
        }


@dataclass(frozen=True)
class AirlineStat:
    airline: str
    flights: int
    reliability: float

    def to_dict(self) -> dict:
        return {
            'airline': self.airline,
            'flights': self.flights,
            'reliability': self.reliability,
        }


@dataclass(frozen=True)
class StatusDistribution:
    scheduled: int = 0
    active: int = 0
    completed: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.scheduled + self.active + self.completed + self.cancelled

    def to_dict(self) -> dict:
        return {
            'scheduled': self.scheduled,
            'active': self.active,
            'completed': self.completed,
            'cancelled': self.cancelled,
        }


@dataclass(frozen=True)
class TimeDistribution:
    day: int = 0
    night: int = 0
    ifr: int = 0
    cross_country: int = 0

    def to_dict(self) -> dict:
        return {
            'day': self.day,
            'night': self.night,
            'ifr': self.ifr,
            'crossCountry': self.cross_country,
        }


@dataclass(frozen=True)
class AnalyticsSummary:
    """
    Complete analytics for a set of logbook flights.

    Serialized with ``to_dict()`` into the camelCase response body the
    dashboard consumes.
    """
    total_flights: int = 0
    total_hours: float = 0.0
    average_flight_time: float = 0.0
    most_frequent_route: str = PLACEHOLDER
    most_used_aircraft: str = PLACEHOLDER
    on_time_percentage: float = 0.0
    monthly_trend: Tuple[MonthlyBucket, ...] = ()
    aircraft_breakdown: Tuple[AircraftShare, ...] = ()
    route_analysis: Tuple[RouteStat, ...] = ()
    status_distribution: StatusDistribution = field(default_factory=StatusDistribution)
    time_distribution: TimeDistribution = field(default_factory=TimeDistribution)
    airline_analysis: Tuple[AirlineStat, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalFlights': self.total_flights,
            'totalHours': self.total_hours,
            'averageFlightTime': self.average_flight_time,
            'mostFrequentRoute': self.most_frequent_route,
            'mostUsedAircraft': self.most_used_aircraft,
            'onTimePercentage': self.on_time_percentage,
            'monthlyTrend': [b.to_dict() for b in self.monthly_trend],
            'aircraftBreakdown': [a.to_dict() for a in self.aircraft_breakdown],
            'routeAnalysis': [r.to_dict() for r in self.route_analysis],
            'statusDistribution': self.status_distribution.to_dict(),
            'timeDistribution': self.time_distribution.to_dict(),
            'airlineAnalysis': [a.to_dict() for a in self.airline_analysis],
        }


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

@dataclass
class _RouteTotals:
    frequency: int = 0
    total_duration: float = 0.0


@dataclass
class _CarrierTotals:
    count: int = 0
    hours: float = 0.0


class FlightAnalyticsAggregator:
    """
    Aggregates logbook flights into an AnalyticsSummary.

    Configuration:
    - rng: source of the synthetic reliability score (needs ``random()``);
      defaults to an unseeded ``random.Random``
    - clock: returns "today", which anchors the monthly trend window
    - top_k: entries kept in each ranked breakdown (default 5)
    - trend_months: length of the monthly trend (default 6)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], date]] = None,
        top_k: int = 5,
        trend_months: int = 6,
    ):
        self.rng = rng or random.Random()
        self.clock = clock or date.today
        self.top_k = top_k
        self.trend_months = trend_months

    def aggregate(self, flights: Optional[Iterable[Any]]) -> AnalyticsSummary:
        """
        Compute the summary for ``flights``.

        Accepts FlightRecord instances, dicts or ORM rows. None or an empty
        sequence gives the zeroed summary.
        """
        records = [FlightRecord.from_mapping(f) for f in (() if flights is None else flights)]
        today = self.clock()

        if not records:
            return AnalyticsSummary(monthly_trend=self._monthly_trend([], today))

        total_flights = len(records)
        hours = np.fromiter(
            (r.hours for r in records), dtype=np.float64, count=total_flights
        )
        # Overflow to inf is handled by the finiteness checks downstream
        with np.errstate(over='ignore'):
            total_hours = float(hours.sum())
        average_flight_time = total_hours / total_flights if total_flights > 0 else 0.0

        route_analysis = self._route_analysis(records)
        carriers = self._group_carriers(records)
        aircraft_breakdown = self._aircraft_breakdown(carriers, total_flights)
        airline_analysis = self._airline_analysis(carriers)

        status = self._status_distribution(records)
        on_time = sum(getattr(status, s) for s in ON_TIME_STATUSES)
        on_time_percentage = on_time / total_flights * 100 if total_flights > 0 else 0.0

        logger.debug(
            f'Aggregated {total_flights} flights: {total_hours:.2f}h, '
            f'{len(carriers)} carriers'
        )

        return AnalyticsSummary(
            total_flights=total_flights,
            total_hours=round_half_up(total_hours, 2),
            average_flight_time=round_half_up(average_flight_time, 2),
            most_frequent_route=route_analysis[0].route if route_analysis else PLACEHOLDER,
            most_used_aircraft=(
                aircraft_breakdown[0].aircraft_type if aircraft_breakdown else PLACEHOLDER
            ),
            on_time_percentage=round_half_up(on_time_percentage, 1),
            monthly_trend=self._monthly_trend(records, today),
            aircraft_breakdown=aircraft_breakdown,
            route_analysis=route_analysis,
            status_distribution=status,
            time_distribution=self._time_distribution(total_hours),
            airline_analysis=airline_analysis,
        )

    def _route_analysis(self, records: List[FlightRecord]) -> Tuple[RouteStat, ...]:
        """Top routes by frequency; ties keep first-seen order."""
        routes: Dict[str, _RouteTotals] = {}
        for r in records:
            totals = routes.setdefault(r.route, _RouteTotals())
            totals.frequency += 1
            totals.total_duration += r.hours

        ranked = sorted(routes.items(), key=lambda item: item[1].frequency, reverse=True)
        return tuple(
            RouteStat(
                route=route,
                frequency=totals.frequency,
                avg_duration=(
                    totals.total_duration / totals.frequency if totals.frequency > 0 else 0.0
                ),
            )
            for route, totals in ranked[:self.top_k]
        )

    def _group_carriers(self, records: List[FlightRecord]) -> Dict[str, _CarrierTotals]:
        carriers: Dict[str, _CarrierTotals] = {}
        for r in records:
            totals = carriers.setdefault(r.carrier, _CarrierTotals())
            totals.count += 1
            totals.hours += r.hours
        return carriers

    def _ranked_carriers(self, carriers: Dict[str, _CarrierTotals]):
        ranked = sorted(carriers.items(), key=lambda item: item[1].count, reverse=True)
        return ranked[:self.top_k]

    def _aircraft_breakdown(
        self,
        carriers: Dict[str, _CarrierTotals],
        total_flights: int,
    ) -> Tuple[AircraftShare, ...]:
        return tuple(
            AircraftShare(
                aircraft_type=code,
                count=totals.count,
                hours=totals.hours,
                percentage=totals.count / total_flights * 100 if total_flights > 0 else 0.0,
            )
            for code, totals in self._ranked_carriers(carriers)
        )

    def _airline_analysis(self, carriers: Dict[str, _CarrierTotals]) -> Tuple[AirlineStat, ...]:
        # Reliability is a placeholder score, drawn fresh for every entry
        return tuple(
            AirlineStat(
                airline=code,
                flights=totals.count,
                reliability=RELIABILITY_BASE + self.rng.random() * RELIABILITY_SPAN,
            )
            for code, totals in self._ranked_carriers(carriers)
        )

    def _monthly_trend(
        self,
        records: List[FlightRecord],
        today: date,
    ) -> Tuple[MonthlyBucket, ...]:
        """
        Flights and hours per calendar month for the trailing window.

        Buckets run oldest to newest and end at today's month. Records
        without a readable date or outside the window are skipped here only.
        """
        current = today.year * 12 + (today.month - 1)
        keys = [
            divmod(current - offset, 12)
            for offset in range(self.trend_months - 1, -1, -1)
        ]
        flights = {key: 0 for key in keys}
        hours = {key: 0.0 for key in keys}

        for r in records:
            flight_date = r.parsed_date
            if flight_date is None:
                continue
            key = (flight_date.year, flight_date.month - 1)
            if key in flights:
                flights[key] += 1
                hours[key] += r.hours

        return tuple(
            MonthlyBucket(
                month=MONTH_NAMES[month_index],
                flights=flights[(year, month_index)],
                hours=round_half_up(hours[(year, month_index)], 1),
            )
            for year, month_index in keys
        )

    def _status_distribution(self, records: List[FlightRecord]) -> StatusDistribution:
        counts = {key: 0 for key in STATUS_KEYS}
        for r in records:
            if isinstance(r.flight_status, str) and r.flight_status in counts:
                counts[r.flight_status] += 1
        return StatusDistribution(**counts)

    def _time_distribution(self, total_hours: float) -> TimeDistribution:
        if not math.isfinite(total_hours):
            return TimeDistribution()
        return TimeDistribution(**{
            name: int(np.floor(total_hours * ratio))
            for name, ratio in TIME_DISTRIBUTION_RATIOS.items()
        })


def aggregate_flights(
    flights: Optional[Iterable[Any]],
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> AnalyticsSummary:
    """Aggregate ``flights`` with a one-off aggregator."""
    clock = (lambda: today) if today is not None else None
    return FlightAnalyticsAggregator(rng=rng, clock=clock).aggregate(flights)
