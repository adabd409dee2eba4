"""
Compiles an event's registration form into a validator.

Each FieldKind maps to a value adapter (shape and type coercion, done with
pydantic) and a rule (the per-kind constraints). Validation never stops at the
first failure: every invalid field is reported with all of its messages.
"""

import re
from typing import Any, Callable, Dict, List, Mapping, NamedTuple

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.api.events.schemas import CONSENT_FIELD_NAME, FieldKind, FormField

PHONE_MIN_LENGTH = 7
PHONE_PATTERN = re.compile(r'^[\d\s+()-]+$')

_STRING = TypeAdapter(str)
_BOOLEAN = TypeAdapter(bool)
_STRING_LIST = TypeAdapter(List[str])
_EMAIL = TypeAdapter(EmailStr)

Rule = Callable[[FormField, Any], List[str]]


class FormValidationError(ValueError):
    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__(f'Invalid fields: {", ".join(errors)}')


def _required_message(field: FormField) -> List[str]:
    return [f'{field.label} is required.'] if field.required else []


def _text_rule(field: FormField, value: str) -> List[str]:
    if not value.strip():
        return _required_message(field)
    return []


def _email_rule(field: FormField, value: str) -> List[str]:
    if not value.strip():
        return _required_message(field)
    try:
        _EMAIL.validate_python(value.strip())
    except ValidationError:
        return ['Invalid email address.']
    return []


def _phone_rule(field: FormField, value: str) -> List[str]:
    if not value:
        return _required_message(field)

    errors = []
    if len(value) < PHONE_MIN_LENGTH:
        errors.append('Phone number is too short.')
    if not PHONE_PATTERN.match(value):
        errors.append(
            'Phone number can only contain digits, spaces, and characters like + ( ) -'
        )
    return errors


def _checkbox_rule(field: FormField, value: bool) -> List[str]:
    if field.required and value is not True:
        return ['You must check this box.']
    return []


def _radio_rule(field: FormField, value: str) -> List[str]:
    if not value:
        return _required_message(field)
    if value not in field.options:
        return [f'"{value}" is not a valid option for {field.label}.']
    return []


def _multiple_choice_rule(field: FormField, value: List[str]) -> List[str]:
    if not value:
        if field.required:
            return [f'Please select at least one option for {field.label}.']
        return []

    unknown = [v for v in value if v not in field.options]
    if unknown:
        return [f'Invalid options for {field.label}: {", ".join(unknown)}.']
    return []


class _KindHandler(NamedTuple):
    adapter: TypeAdapter
    default: Callable[[], Any]
    rule: Rule


KIND_HANDLERS: Dict[FieldKind, _KindHandler] = {
    FieldKind.TEXT: _KindHandler(_STRING, str, _text_rule),
    FieldKind.LONG_TEXT: _KindHandler(_STRING, str, _text_rule),
    FieldKind.EMAIL: _KindHandler(_STRING, str, _email_rule),
    FieldKind.PHONE: _KindHandler(_STRING, str, _phone_rule),
    FieldKind.CHECKBOX: _KindHandler(_BOOLEAN, bool, _checkbox_rule),
    FieldKind.RADIO: _KindHandler(_STRING, str, _radio_rule),
    FieldKind.MULTIPLE_CHOICE: _KindHandler(_STRING_LIST, list, _multiple_choice_rule),
}


def _coerce(handler: _KindHandler, raw: Any):
    # Browsers post unanswered inputs as empty strings
    if raw is None or raw == '':
        return handler.default(), []
    try:
        return handler.adapter.validate_python(raw), []
    except ValidationError as e:
        return None, [error['msg'] for error in e.errors()]


class CompiledFormSchema:
    def __init__(self, fields: List[FormField]):
        self.fields = list(fields)

    @property
    def field_names(self) -> List[str]:
        return [field.name for field in self.fields] + [CONSENT_FIELD_NAME]

    def default_values(self) -> Dict[str, Any]:
        defaults = {field.name: KIND_HANDLERS[field.kind].default() for field in self.fields}
        defaults[CONSENT_FIELD_NAME] = False
        return defaults

    def validate(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate raw submitted data.

        Returns one entry per form field plus the consent flag, typed by kind.
        Keys that are not part of the form are dropped.
        Raises FormValidationError with every invalid field's messages.
        """
        form_data = {}
        errors = {}

        for field in self.fields:
            handler = KIND_HANDLERS[field.kind]
            value, field_errors = _coerce(handler, data.get(field.name))
            if not field_errors:
                field_errors = handler.rule(field, value)

            if field_errors:
                errors[field.name] = field_errors
            else:
                form_data[field.name] = value

        consent, consent_errors = _coerce(
            KIND_HANDLERS[FieldKind.CHECKBOX], data.get(CONSENT_FIELD_NAME)
        )
        if consent_errors or consent is not True:
            errors[CONSENT_FIELD_NAME] = ['You must agree to the terms and conditions.']
        else:
            form_data[CONSENT_FIELD_NAME] = True

        if errors:
            raise FormValidationError(errors)
        return form_data


def compile_form_schema(fields: List[FormField]) -> CompiledFormSchema:
    return CompiledFormSchema(fields)
