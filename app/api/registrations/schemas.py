from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from app.api.email_logs.schemas import NotificationStatus


class ExportFormat(str, Enum):
    PLAIN = 'plain'
    EXCEL = 'excel'


class InternalRegistrationCreate(BaseModel):
    id: str
    event_id: int
    form_data: Dict[str, Any]
    check_in_token: str
    submitted_at: datetime
    checked_in: bool = False
    check_in_time: Optional[datetime] = None


class Registration(BaseModel):
    id: str
    event_id: int
    submitted_at: datetime
    form_data: Dict[str, Any]
    check_in_token: str
    checked_in: bool
    check_in_time: Optional[datetime] = None
    attendee_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RegistrationResult(BaseModel):
    success: bool
    registration: Registration
    email_status: NotificationStatus
    email_error: Optional[str] = None


class RegistrationFilter(BaseModel):
    checked_in: Optional[bool] = None
