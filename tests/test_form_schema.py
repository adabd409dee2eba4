import pytest

from app.api.events.form_schema import (
    KIND_HANDLERS,
    FormValidationError,
    compile_form_schema,
)
from app.api.events.schemas import FieldKind, FormField
from tests.conftest import FORM_FIELDS


@pytest.fixture
def compiled():
    return compile_form_schema([FormField(**f) for f in FORM_FIELDS])


def _errors(compiled, data) -> dict:
    with pytest.raises(FormValidationError) as exc_info:
        compiled.validate(data)
    return exc_info.value.errors


def test_every_field_kind_has_a_rule():
    assert set(KIND_HANDLERS) == set(FieldKind)


def test_valid_submission_has_one_entry_per_field(compiled, valid_form_data):
    result = compiled.validate(valid_form_data)

    assert set(result) == {f['name'] for f in FORM_FIELDS} | {'rodo'}
    assert result['workshops'] == ['A', 'C']
    assert result['newsletter'] is True
    assert result['rodo'] is True


def test_unknown_keys_are_dropped(compiled, valid_form_data):
    valid_form_data['is_admin'] = True
    result = compiled.validate(valid_form_data)
    assert 'is_admin' not in result


def test_missing_optional_fields_get_defaults(compiled):
    data = {
        'full_name': 'Jane Doe',
        'email': 'jane.doe@example.com',
        'tshirt': 'S',
        'workshops': ['B'],
        'rodo': True,
    }
    result = compiled.validate(data)

    assert result['phone'] == ''
    assert result['newsletter'] is False
    assert result['notes'] == ''


@pytest.mark.parametrize('field_name', ['full_name', 'email', 'tshirt', 'workshops'])
def test_missing_required_field_is_reported(compiled, valid_form_data, field_name):
    del valid_form_data[field_name]
    errors = _errors(compiled, valid_form_data)
    assert field_name in errors
    assert errors[field_name]


def test_null_counts_as_empty(compiled, valid_form_data):
    valid_form_data['full_name'] = None
    errors = _errors(compiled, valid_form_data)
    assert errors['full_name'] == ['Full name is required.']


def test_blank_text_is_rejected_when_required(compiled, valid_form_data):
    valid_form_data['full_name'] = '   '
    assert 'full_name' in _errors(compiled, valid_form_data)


def test_phone_rules(compiled, valid_form_data):
    valid_form_data['phone'] = '+1 (555) 123-4567'
    assert compiled.validate(valid_form_data)['phone'] == '+1 (555) 123-4567'

    valid_form_data['phone'] = 'abc'
    errors = _errors(compiled, valid_form_data)
    assert errors['phone'] == [
        'Phone number is too short.',
        'Phone number can only contain digits, spaces, and characters like + ( ) -',
    ]


def test_optional_phone_may_be_empty(compiled, valid_form_data):
    valid_form_data['phone'] = ''
    assert compiled.validate(valid_form_data)['phone'] == ''


def test_invalid_email_is_rejected(compiled, valid_form_data):
    valid_form_data['email'] = 'not-an-email'
    errors = _errors(compiled, valid_form_data)
    assert errors['email'] == ['Invalid email address.']


def test_required_multiple_choice_needs_one_option(compiled, valid_form_data):
    valid_form_data['workshops'] = []
    errors = _errors(compiled, valid_form_data)
    assert errors['workshops'] == ['Please select at least one option for Workshops.']

    valid_form_data['workshops'] = ['A']
    assert compiled.validate(valid_form_data)['workshops'] == ['A']


def test_multiple_choice_rejects_unknown_options(compiled, valid_form_data):
    valid_form_data['workshops'] = ['A', 'Z']
    errors = _errors(compiled, valid_form_data)
    assert errors['workshops'] == ['Invalid options for Workshops: Z.']


def test_multiple_choice_rejects_wrong_shape(compiled, valid_form_data):
    valid_form_data['workshops'] = 5
    assert 'workshops' in _errors(compiled, valid_form_data)


def test_radio_must_be_one_of_the_options(compiled, valid_form_data):
    valid_form_data['tshirt'] = 'XXL'
    errors = _errors(compiled, valid_form_data)
    assert errors['tshirt'] == ['"XXL" is not a valid option for T-shirt size.']


def test_required_checkbox_must_be_checked():
    compiled = compile_form_schema(
        [FormField(name='adult', label='I am 18+', kind='checkbox', required=True)]
    )
    errors = _errors(compiled, {'adult': False, 'rodo': True})
    assert errors == {'adult': ['You must check this box.']}

    assert compiled.validate({'adult': True, 'rodo': True}) == {
        'adult': True,
        'rodo': True,
    }


def test_consent_is_always_required():
    compiled = compile_form_schema([])

    assert _errors(compiled, {}) == {
        'rodo': ['You must agree to the terms and conditions.']
    }
    assert compiled.validate({'rodo': True}) == {'rodo': True}


def test_all_invalid_fields_are_reported(compiled):
    errors = _errors(compiled, {'phone': 'abc', 'tshirt': 'XXL'})
    assert set(errors) == {'full_name', 'email', 'phone', 'tshirt', 'workshops', 'rodo'}


def test_default_values(compiled):
    assert compiled.default_values() == {
        'full_name': '',
        'email': '',
        'phone': '',
        'tshirt': '',
        'workshops': [],
        'newsletter': False,
        'notes': '',
        'rodo': False,
    }


def test_empty_string_counts_as_unanswered(compiled, valid_form_data):
    valid_form_data['newsletter'] = ''
    valid_form_data['phone'] = ''
    result = compiled.validate(valid_form_data)
    assert result['newsletter'] is False
    assert result['phone'] == ''

    valid_form_data['workshops'] = ''
    errors = _errors(compiled, valid_form_data)
    assert errors == {
        'workshops': ['Please select at least one option for Workshops.']
    }
