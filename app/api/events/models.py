from typing import TYPE_CHECKING, List

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, relationship

from app.api.events.schemas import FormField
from app.core.database import Base
from app.core.utils import current_time

if TYPE_CHECKING:
    from app.api.registrations.models import Registration


class Event(Base):
    __tablename__ = 'events'

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        unique=True,
        index=True,
    )
    name = Column(String, nullable=False)
    slug = Column(String, index=True, nullable=False, unique=True)
    date = Column(DateTime, nullable=False)
    location_types = Column(JSON, nullable=False, default=list)
    address = Column(String)
    description = Column(Text)
    rodo = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)
    theme_color = Column(String)
    form_fields = Column(JSON, nullable=False, default=list)

    registrations: Mapped[List['Registration']] = relationship(
        'Registration', back_populates='event'
    )

    created_at = Column(DateTime, default=current_time)
    updated_at = Column(DateTime, default=current_time, onupdate=current_time)
    created_by = Column(String)
    updated_by = Column(String)

    def get_form_fields(self) -> List[FormField]:
        return [FormField.model_validate(f) for f in self.form_fields or []]
