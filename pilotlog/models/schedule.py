"""
PilotSchedule model - upcoming duties imported from roster files.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy import String, Date, DateTime, Time, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from pilotlog.models.base import Base


class PilotSchedule(Base):
    """A scheduled flight assignment for one pilot."""

    __tablename__ = 'pilot_schedules'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    pilot_id: Mapped[int] = mapped_column(
        ForeignKey('pilots.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )

    flight_date: Mapped[date] = mapped_column(Date, nullable=False)
    flight_time: Mapped[time] = mapped_column(Time, nullable=False)
    flight_number: Mapped[str] = mapped_column(String(20), nullable=False)
    flight_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    standby_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment='When the pilot must be on standby'
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f'<PilotSchedule {self.id} pilot={self.pilot_id} {self.flight_number} {self.flight_date}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'pilot_id': self.pilot_id,
            'flight_date': self.flight_date.isoformat() if self.flight_date else None,
            'flight_time': self.flight_time.strftime('%H:%M:%S') if self.flight_time else None,
            'flight_number': self.flight_number,
            'flight_name': self.flight_name,
            'standby_time': self.standby_time.isoformat() if self.standby_time else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
