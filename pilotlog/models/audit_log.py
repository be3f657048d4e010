"""
Audit trail models.

AuditLog records who did what to which entity; Backup stores manual
snapshots of the flight table.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from pilotlog.models.base import Base


class AuditLog(Base):
    """
    One audited action.

    Fields:
        action: Verb such as 'login', 'created', 'backup'
        entity: Kind of thing acted on ('pilot', 'flight', 'system', ...)
        entity_id: Identifier of the thing acted on (stringified)
        user_id: Acting user's email, or 'system'
    """

    __tablename__ = 'audit_logs'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)

    user_id: Mapped[str] = mapped_column(String(255), default='system')
    user_name: Mapped[str] = mapped_column(String(255), default='System')

    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    flight_details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f'<AuditLog {self.id} {self.action} {self.entity}:{self.entity_id}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'action': self.action,
            'entity': self.entity,
            'entity_id': self.entity_id,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'details': self.details,
            'flight_details': self.flight_details,
        }


class Backup(Base):
    """Manual snapshot of the detailed_flights table."""

    __tablename__ = 'backups'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
    )

    data: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f'<Backup {self.id} @ {self.timestamp}>'
