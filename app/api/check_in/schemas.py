from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class CheckInStatus(str, Enum):
    CHECKED_IN = 'checked-in'
    ALREADY_CHECKED_IN = 'already-checked-in'
    NOT_FOUND = 'not-found'


class NewCheckIn(BaseModel):
    event_id: int
    code: str

    @field_validator('code')
    def validate_code(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Code is required')
        return v


class NewQRCheckIn(NewCheckIn):
    pass


class CheckInToggle(BaseModel):
    checked_in: bool


class CheckInResponse(BaseModel):
    success: bool
    status: CheckInStatus
    message: str
    registration_id: Optional[str] = None
    attendee_name: Optional[str] = None
    check_in_time: Optional[datetime] = None
