from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from app.core.database import Base
from app.core.utils import current_time


class EmailLog(Base):
    """One row per notification attempt, successful or not."""

    __tablename__ = 'email_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    receiver_email = Column(String, nullable=False, index=True)
    template = Column(String, nullable=False)
    params = Column(JSON, nullable=False, default=dict)
    status = Column(String, nullable=False)  # success, failed
    error_message = Column(Text, nullable=True)

    event_id = Column(Integer, ForeignKey('events.id'), nullable=True, index=True)
    # Plain column: the log outlives a deleted registration
    registration_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, default=current_time, nullable=False)
