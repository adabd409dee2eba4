import json
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class EmailStatus(str, Enum):
    SUCCESS = 'success'
    FAILED = 'failed'


class EmailTemplate(str, Enum):
    REGISTRATION_CONFIRMED = 'registration-confirmed'


class NotificationStatus(str, Enum):
    SENT = 'sent'
    FAILED = 'failed'
    NO_ADDRESS = 'no-address'


class NotificationResult(BaseModel):
    status: NotificationStatus
    reason: Optional[str] = None


class EmailAttachment(BaseModel):
    name: str = Field(alias='Name')
    content_id: str = Field(alias='ContentID')
    content: str = Field(alias='Content')
    content_type: str = Field(alias='ContentType')

    model_config = ConfigDict(
        populate_by_name=True,
    )


class EmailLogCreate(BaseModel):
    receiver_email: str
    template: EmailTemplate
    params: Dict[str, Any]
    status: EmailStatus
    error_message: Optional[str] = None
    event_id: Optional[int] = None
    registration_id: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

    @field_serializer('params')
    def serialize_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        # Dates and other non-JSON values are stored as text
        return json.loads(json.dumps(params, default=str))
