"""
Flight information service - looks up flights the logbook doesn't know yet.

Integrates with AviationStack to get:
- Flights operating on a given date
- A specific flight by IATA flight code
- The latest reported flights, for bulk storing

Uses caching to minimize API calls and respect rate limits, and can
generate plausible mock flights when no live data is available.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

from pilotlog.config import config

logger = logging.getLogger(__name__)


@dataclass
class FlightInfo:
    """A flight as returned by the lookup, shaped like a logbook row."""
    flight_date: Optional[date]
    flight_status: str = 'scheduled'
    departure_airport: Optional[str] = None
    departure_iata: str = ''
    departure_icao: str = ''
    departure_scheduled: Optional[datetime] = None
    arrival_airport: Optional[str] = None
    arrival_iata: str = ''
    arrival_icao: str = ''
    arrival_scheduled: Optional[datetime] = None
    airline_name: str = ''
    airline_iata: str = ''
    flight_number: str = ''
    flight_iata: str = ''
    flight_icao: str = ''
    duration_hours: float = 0.0

    def to_row(self) -> Dict[str, Any]:
        """Column values for a DetailedFlight insert (naive UTC datetimes)."""
        row = asdict(self)
        for key in ('departure_scheduled', 'arrival_scheduled'):
            row[key] = _to_naive_utc(row[key])
        return row

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        row = asdict(self)
        for key, value in row.items():
            if isinstance(value, (date, datetime)):
                row[key] = value.isoformat()
        return row


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse datetime string from API."""
    if not dt_str:
        return None
    try:
        # AviationStack uses ISO format
        return datetime.fromisoformat(dt_str.replace('Z', '+00:00'))
    except (TypeError, ValueError):
        return None


def _airport_name(iata: Optional[str]) -> Optional[str]:
    return f'{iata} Airport' if iata else None


def normalize_flight(payload: dict, flight_date: Optional[date] = None) -> FlightInfo:
    """
    Convert one AviationStack flight object into a FlightInfo.

    Duration is the absolute scheduled block time in hours, or 0 when
    either scheduled time is missing.
    """
    departure = payload.get('departure') or {}
    arrival = payload.get('arrival') or {}
    airline = payload.get('airline') or {}
    flight = payload.get('flight') or {}

    dep_time = _parse_datetime(departure.get('scheduled'))
    arr_time = _parse_datetime(arrival.get('scheduled'))

    duration = 0.0
    if dep_time and arr_time:
        try:
            duration = abs((arr_time - dep_time).total_seconds()) / 3600
        except TypeError:
            # One side naive, the other aware
            duration = abs((_to_naive_utc(arr_time) - _to_naive_utc(dep_time)).total_seconds()) / 3600

    if flight_date is None:
        try:
            flight_date = date.fromisoformat(payload.get('flight_date') or '')
        except ValueError:
            flight_date = None

    return FlightInfo(
        flight_date=flight_date,
        flight_status=payload.get('flight_status') or 'scheduled',
        departure_airport=departure.get('airport') or _airport_name(departure.get('iata')),
        departure_iata=departure.get('iata') or '',
        departure_icao=departure.get('icao') or '',
        departure_scheduled=dep_time,
        arrival_airport=arrival.get('airport') or _airport_name(arrival.get('iata')),
        arrival_iata=arrival.get('iata') or '',
        arrival_icao=arrival.get('icao') or '',
        arrival_scheduled=arr_time,
        airline_name=airline.get('name') or '',
        airline_iata=airline.get('iata') or '',
        flight_number=flight.get('number') or '',
        flight_iata=flight.get('iata') or '',
        flight_icao=flight.get('icao') or '',
        duration_hours=round(duration, 2),
    )


# Sample data for mock flights
MOCK_AIRLINES = [
    ('AA', 'American Airlines'),
    ('DL', 'Delta Air Lines'),
    ('UA', 'United Airlines'),
    ('SW', 'Southwest Airlines'),
    ('BA', 'British Airways'),
]

MOCK_AIRPORTS = [
    ('JFK', 'John F. Kennedy International Airport'),
    ('LAX', 'Los Angeles International Airport'),
    ('ORD', "Chicago O'Hare International Airport"),
    ('DFW', 'Dallas/Fort Worth International Airport'),
    ('LHR', 'London Heathrow Airport'),
]

MOCK_STATUSES = ['scheduled', 'active', 'completed', 'cancelled']


def generate_mock_flights(
    flight_date: date,
    count: int = 5,
    rng: Optional[random.Random] = None,
) -> List[FlightInfo]:
    """Generate realistic mock flights for ``flight_date`` (2-10h block times)."""
    rng = rng or random.Random()
    flights = []

    for _ in range(count):
        airline_iata, airline_name = rng.choice(MOCK_AIRLINES)
        dep_iata, dep_name = rng.choice(MOCK_AIRPORTS)
        arr_iata, arr_name = rng.choice(MOCK_AIRPORTS)
        number = rng.randint(1, 9999)

        departs = datetime.combine(flight_date, datetime.min.time()) + timedelta(
            hours=rng.randrange(24), minutes=rng.randrange(60)
        )
        duration = 2 + rng.random() * 8
        arrives = departs + timedelta(hours=duration)

        flights.append(FlightInfo(
            flight_date=flight_date,
            flight_status=rng.choice(MOCK_STATUSES),
            departure_airport=dep_name,
            departure_iata=dep_iata,
            departure_scheduled=departs,
            arrival_airport=arr_name,
            arrival_iata=arr_iata,
            arrival_scheduled=arrives,
            airline_name=airline_name,
            airline_iata=airline_iata,
            flight_number=str(number),
            flight_iata=f'{airline_iata}{number}',
            duration_hours=round(duration, 2),
        ))

    return flights


class FlightInfoService:
    """
    Service to fetch flight information from AviationStack.

    Free tier allows 100 requests/month, so results (including empty
    ones) are cached and a daily request budget is enforced.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else config.aviationstack.api_key
        self.base_url = base_url or config.aviationstack.base_url
        self.timeout = timeout or config.aviationstack.timeout_seconds

        # Cache: key -> (flights, timestamp)
        self._cache: Dict[Tuple[str, ...], Tuple[List[FlightInfo], float]] = {}
        self._cache_ttl = 3600  # 1 hour cache
        self._lock = threading.RLock()

        # Track API usage
        self._requests_today = 0
        self._max_requests_per_day = config.aviationstack.max_requests_per_day

        if not self.api_key:
            logger.warning('AviationStack API key not configured - live flight lookups disabled')

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def flights_by_date(self, flight_date: date, limit: int = 10) -> List[FlightInfo]:
        """Flights operating on ``flight_date``; [] if unavailable."""
        key = ('date', flight_date.isoformat(), str(limit))
        params = {'flight_date': flight_date.isoformat(), 'limit': limit}
        return self._lookup(key, params, flight_date)

    def search_flight(self, flight_iata: str, flight_date: date) -> List[FlightInfo]:
        """
        Look up one flight by IATA code (e.g. 'AA100'); [] if not found.

        The code is split into the 2-letter airline prefix and the number.
        """
        if not flight_iata:
            return []
        flight_iata = flight_iata.strip().upper()
        key = ('flight', flight_iata, flight_date.isoformat())
        params = {
            'airline_iata': flight_iata[:2],
            'flight_number': flight_iata[2:],
            'limit': 1,
        }
        return self._lookup(key, params, flight_date)

    def latest_flights(self, limit: int = 5) -> List[FlightInfo]:
        """
        The most recent flights AviationStack reports, at most ``limit``.

        Not cached: each call is a fresh pull meant to be stored.
        """
        if not self.api_key:
            return []

        if self._requests_today >= self._max_requests_per_day:
            logger.warning('Daily API limit reached, skipping fetch')
            return []

        return self._fetch_from_api({'limit': limit}, None)[:limit]

    def _lookup(
        self,
        key: Tuple[str, ...],
        params: dict,
        flight_date: date,
    ) -> List[FlightInfo]:
        cached = self._get_cached(key)
        if cached is not None:
            logger.debug(f'Flight cache hit for {key}')
            return cached

        if not self.api_key:
            return []

        if self._requests_today >= self._max_requests_per_day:
            logger.warning('Daily API limit reached, skipping lookup')
            return []

        flights = self._fetch_from_api(params, flight_date)
        self._set_cached(key, flights)
        return flights

    def _get_cached(self, key: Tuple[str, ...]) -> Optional[List[FlightInfo]]:
        """Get cached flights if not expired."""
        with self._lock:
            if key in self._cache:
                flights, timestamp = self._cache[key]
                if time.time() - timestamp < self._cache_ttl:
                    return flights
                del self._cache[key]
        return None

    def _set_cached(self, key: Tuple[str, ...], flights: List[FlightInfo]) -> None:
        with self._lock:
            self._cache[key] = (flights, time.time())

            # Limit cache size
            if len(self._cache) > 500:
                sorted_items = sorted(self._cache.items(), key=lambda x: x[1][1])
                for old_key, _ in sorted_items[:100]:
                    del self._cache[old_key]

    def _fetch_from_api(self, params: dict, flight_date: Optional[date]) -> List[FlightInfo]:
        """Call GET /flights and normalize the payload; [] on any failure."""
        try:
            response = requests.get(
                f'{self.base_url}/flights',
                params={'access_key': self.api_key, **params},
                timeout=self.timeout,
            )
            with self._lock:
                self._requests_today += 1

            if response.status_code != 200:
                logger.warning(f'AviationStack API error: {response.status_code}')
                return []

            data = response.json()

            if 'error' in data:
                logger.warning(f'AviationStack API error: {data["error"]}')
                return []

            flights = [
                normalize_flight(item, flight_date)
                for item in data.get('data') or []
                if isinstance(item, dict)
            ]
            logger.info(f'Fetched {len(flights)} flights from AviationStack')
            return flights

        except requests.RequestException as e:
            logger.error(f'Failed to fetch flight info: {e}')
            return []
        except (ValueError, AttributeError) as e:
            logger.error(f'Error parsing flight info: {e}')
            return []

    @property
    def stats(self) -> dict:
        """Get service statistics."""
        with self._lock:
            return {
                'cache_size': len(self._cache),
                'requests_today': self._requests_today,
                'api_configured': self.is_configured,
            }


# Singleton instance
flight_info_service = FlightInfoService()
