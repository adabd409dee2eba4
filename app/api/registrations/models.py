from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, relationship

from app.api.events.schemas import FieldKind, FormField
from app.core.database import Base
from app.core.utils import current_time

if TYPE_CHECKING:
    from app.api.events.models import Event

NAME_KEYS = ('full_name', 'name')


class Registration(Base):
    __tablename__ = 'registrations'

    id = Column(String, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey('events.id'), nullable=False, index=True)
    submitted_at = Column(DateTime, nullable=False, default=current_time)
    form_data = Column(JSON, nullable=False)
    check_in_token = Column(String, nullable=False, unique=True, index=True)
    checked_in = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime, nullable=True)

    event: Mapped['Event'] = relationship('Event', back_populates='registrations')
    token: Mapped['CheckInToken'] = relationship(
        'CheckInToken', back_populates='registration', uselist=False
    )

    @property
    def attendee_name(self) -> Optional[str]:
        for key in NAME_KEYS:
            value = (self.form_data or {}).get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    def contact_email(self, fields: List[FormField]) -> Optional[str]:
        """The submitted address of the `email` field, else of the first email field."""
        email_fields = [f.name for f in fields if f.kind == FieldKind.EMAIL]
        if 'email' in email_fields:
            email_fields.remove('email')
            email_fields.insert(0, 'email')

        for name in email_fields:
            value = (self.form_data or {}).get(name)
            if value:
                return value.strip()
        return None


class CheckInToken(Base):
    __tablename__ = 'check_in_tokens'

    token = Column(String, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey('events.id'), nullable=False)
    registration_id = Column(
        String,
        ForeignKey('registrations.id'),
        nullable=False,
        unique=True,
    )
    created_at = Column(DateTime, default=current_time)

    registration: Mapped['Registration'] = relationship(
        'Registration', back_populates='token'
    )
