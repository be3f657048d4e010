"""
DetailedFlight model - logbook entries.

One row per logged (or looked-up) flight. Rows come from two places:
pilots saving flights to their logbook, and AviationStack lookups that
are persisted for reuse.

Design notes:
- flight_date is indexed because analytics and logbook views sort by it
- created_by scopes rows to the pilot who logged them
- Scheduled times are stored as naive UTC datetimes
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import String, Numeric, Date, DateTime, ForeignKey, Index, Select, select
from sqlalchemy.orm import Mapped, mapped_column

from pilotlog.models.base import Base


class DetailedFlight(Base):
    """A single flight with departure/arrival and carrier details."""

    __tablename__ = 'detailed_flights'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    flight_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)

    flight_status: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment='scheduled, active, completed, cancelled, ...'
    )

    # Departure
    departure_airport: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    departure_iata: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    departure_icao: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    departure_scheduled: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Arrival
    arrival_airport: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    arrival_iata: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    arrival_icao: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    arrival_scheduled: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Carrier and flight identifiers
    airline_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    airline_iata: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    flight_number: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    flight_iata: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, index=True)
    flight_icao: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    duration_hours: Mapped[Optional[float]] = mapped_column(
        Numeric(5, 2, asdecimal=False),
        nullable=True,
    )

    pilot_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey('pilots.id', ondelete='SET NULL'),
        nullable=True,
    )

    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey('pilots.id', ondelete='SET NULL'),
        nullable=True,
        index=True,
        comment='Pilot who logged this flight'
    )

    __table_args__ = (
        Index('ix_detailed_flights_iata_date', 'flight_iata', 'flight_date'),
    )

    def __repr__(self) -> str:
        return f'<DetailedFlight {self.id} {self.flight_iata or "?"} {self.flight_date}>'

    def to_dict(self) -> dict:
        """Row shape returned by the logbook endpoints."""
        return {
            'id': self.id,
            'flight_date': self.flight_date.isoformat() if self.flight_date else None,
            'flight_status': self.flight_status,
            'departure_airport': self.departure_airport,
            'departure_iata': self.departure_iata,
            'departure_icao': self.departure_icao,
            'departure_scheduled': _iso(self.departure_scheduled),
            'arrival_airport': self.arrival_airport,
            'arrival_iata': self.arrival_iata,
            'arrival_icao': self.arrival_icao,
            'arrival_scheduled': _iso(self.arrival_scheduled),
            'airline_name': self.airline_name,
            'airline_iata': self.airline_iata,
            'flight_number': self.flight_number,
            'flight_iata': self.flight_iata,
            'flight_icao': self.flight_icao,
            'duration_hours': float(self.duration_hours) if self.duration_hours is not None else None,
            'pilot_id': self.pilot_id,
            'created_by': self.created_by,
        }

    def to_log_dict(self) -> dict:
        """Compact row for the logbook table."""
        full = self.to_dict()
        keys = (
            'id', 'flight_iata', 'flight_date',
            'departure_iata', 'arrival_iata',
            'departure_scheduled', 'arrival_scheduled',
            'airline_iata', 'duration_hours',
        )
        return {k: full[k] for k in keys}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def flights_visible_to(user: dict) -> Select:
    """
    Base query for the flights a user may see.

    Admins see every flight; pilots see the flights they logged.
    ``user`` is the token identity ({'id': ..., 'role': ...}).
    """
    stmt = select(DetailedFlight)
    if user.get('role') != 'admin':
        stmt = stmt.where(DetailedFlight.created_by == user.get('id'))
    return stmt
