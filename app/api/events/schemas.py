from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    field_validator,
    model_validator,
)

CONSENT_FIELD_NAME = 'rodo'


class FieldKind(str, Enum):
    TEXT = 'text'
    EMAIL = 'email'
    PHONE = 'phone'
    CHECKBOX = 'checkbox'
    RADIO = 'radio'
    MULTIPLE_CHOICE = 'multiple-choice'
    LONG_TEXT = 'long-text'


CHOICE_KINDS = (FieldKind.RADIO, FieldKind.MULTIPLE_CHOICE)


class LocationType(str, Enum):
    VIRTUAL = 'Virtual'
    ON_SITE = 'On-site'


class FormField(BaseModel):
    name: str
    label: str
    kind: FieldKind
    required: bool = False
    placeholder: Optional[str] = None
    options: Optional[List[str]] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('Field name is required')
        if value == CONSENT_FIELD_NAME:
            raise ValueError(f'"{CONSENT_FIELD_NAME}" is a reserved field name')
        return value

    @model_validator(mode='after')
    def check_options(self) -> 'FormField':
        if self.kind in CHOICE_KINDS:
            if not self.options or not all(o.strip() for o in self.options):
                raise ValueError(f'Field {self.name} requires a non-empty options list')
        elif self.options:
            raise ValueError(f'Field {self.name} of kind {self.kind.value} takes no options')
        return self


def _check_unique_names(fields: List[FormField]) -> List[FormField]:
    seen = set()
    for field in fields:
        if field.name in seen:
            raise ValueError(f'Duplicate field name: {field.name}')
        seen.add(field.name)
    return fields


FormFieldList = Annotated[List[FormField], AfterValidator(_check_unique_names)]


class EventBase(BaseModel):
    name: str
    date: datetime
    location_types: List[LocationType] = []
    address: Optional[str] = None
    description: Optional[str] = None
    rodo: str
    is_active: bool = False
    theme_color: Optional[str] = None
    form_fields: FormFieldList = []


class EventCreate(EventBase):
    pass


class EventUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[datetime] = None
    location_types: Optional[List[LocationType]] = None
    address: Optional[str] = None
    description: Optional[str] = None
    rodo: Optional[str] = None
    is_active: Optional[bool] = None
    theme_color: Optional[str] = None
    form_fields: Optional[FormFieldList] = None


class InternalEventCreate(EventBase):
    slug: str
    created_by: Optional[str] = None


class Event(EventBase):
    id: int
    slug: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EventForm(BaseModel):
    """Everything a client needs to render an event's registration form."""

    event_id: int
    fields: List[FormField]
    rodo: str
    defaults: Dict[str, Any]


class EventFilter(BaseModel):
    is_active: Optional[bool] = None
