"""
Pilot model - logbook accounts.

Each pilot owns the flights they log and the schedules imported for them.
Administrators see every pilot's flights in analytics and logbook views.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String, Numeric, DateTime, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from pilotlog.models.base import Base


class LicenseType(str, Enum):
    """Pilot licence categories."""
    PPL = 'PPL'
    CPL = 'CPL'
    ATPL = 'ATPL'
    STUDENT = 'Student'


class PilotRole(str, Enum):
    """Account roles. Admins see all pilots' data."""
    PILOT = 'pilot'
    ADMIN = 'admin'


class Pilot(Base):
    """
    A registered pilot account.

    Fields:
        email: Login identifier, unique
        username: Display handle, unique
        password: Salted password hash (never the plain password)
        license_type: One of PPL, CPL, ATPL, Student
        role: 'pilot' or 'admin'
    """

    __tablename__ = 'pilots'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment='Login email'
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment='Password hash'
    )

    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    license_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    license_type: Mapped[str] = mapped_column(
        String(10),
        default=LicenseType.PPL.value,
        comment='PPL, CPL, ATPL or Student'
    )

    total_hours: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False),
        default=0.0,
    )

    role: Mapped[str] = mapped_column(
        String(10),
        default=PilotRole.PILOT.value,
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

    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f'<Pilot {self.id} {self.email} ({self.role})>'

    @property
    def is_admin(self) -> bool:
        return self.role == PilotRole.ADMIN.value

    def to_dict(self) -> dict:
        """Public profile, camelCase as returned by the auth endpoints."""
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'licenseNumber': self.license_number,
            'licenseType': self.license_type,
            'totalHours': float(self.total_hours or 0),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'lastLogin': self.last_login.isoformat() if self.last_login else None,
            'role': self.role,
        }
