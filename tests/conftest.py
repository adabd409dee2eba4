from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.events.models import Event
from app.api.registrations.crud import registration as registration_crud
from app.core.config import Environment, settings
from app.core.database import Base, get_db
from app.core.security import StaffRole, create_access_token
from main import app

CHECK_IN_API_KEY = 'test_check_in_api_key'

FORM_FIELDS = [
    {'name': 'full_name', 'label': 'Full name', 'kind': 'text', 'required': True},
    {'name': 'email', 'label': 'Email', 'kind': 'email', 'required': True},
    {'name': 'phone', 'label': 'Phone', 'kind': 'phone', 'required': False},
    {
        'name': 'tshirt',
        'label': 'T-shirt size',
        'kind': 'radio',
        'required': True,
        'options': ['S', 'M', 'L'],
    },
    {
        'name': 'workshops',
        'label': 'Workshops',
        'kind': 'multiple-choice',
        'required': True,
        'options': ['A', 'B', 'C'],
    },
    {'name': 'newsletter', 'label': 'Newsletter', 'kind': 'checkbox', 'required': False},
    {'name': 'notes', 'label': 'Notes', 'kind': 'long-text', 'required': False},
]


@pytest.fixture(scope='session', autouse=True)
def check_test_environment():
    if settings.ENVIRONMENT != Environment.TEST:
        raise RuntimeError(
            f'Tests can only be executed in test environment. Current environment: {settings.ENVIRONMENT}'
        )


@pytest.fixture(scope='session', autouse=True)
def setup_test_keys():
    """Set default keys for testing to avoid None values in headers"""
    original_check_in_key = settings.CHECK_IN_API_KEY
    original_secret_key = settings.SECRET_KEY

    settings.CHECK_IN_API_KEY = CHECK_IN_API_KEY
    settings.SECRET_KEY = 'test_secret_key'

    yield

    settings.CHECK_IN_API_KEY = original_check_in_key
    settings.SECRET_KEY = original_secret_key


@pytest.fixture(scope='session')
def test_db_engine():
    engine = create_engine(
        settings.SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope='function')
def db_session(test_db_engine):
    """Create a fresh database session for each test"""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_db_engine
    )

    Base.metadata.drop_all(bind=test_db_engine)
    Base.metadata.create_all(bind=test_db_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope='function')
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def get_auth_headers(user_id: int, role: StaffRole = StaffRole.ORGANIZER) -> dict:
    access_token = create_access_token(
        data={
            'user_id': user_id,
            'email': f'staff{user_id}@example.com',
            'role': role.value,
        }
    )
    return {'Authorization': f'Bearer {access_token}'}


@pytest.fixture
def auth_headers():
    return get_auth_headers(1)


@pytest.fixture
def admin_headers():
    return get_auth_headers(2, StaffRole.ADMINISTRATOR)


@pytest.fixture
def check_in_headers():
    return {'x-api-key': CHECK_IN_API_KEY}


@pytest.fixture
def create_test_event(db_session):
    """Factory fixture to create test events"""

    def _create_event(name='Test Conference', form_fields=None, is_active=True):
        event = Event(
            name=name,
            slug=name.lower().replace(' ', '-'),
            date=datetime(2026, 11, 20, 18, 0),
            location_types=['On-site'],
            address='Main Street 1',
            description='A test event',
            rodo='I agree to the processing of my personal data.',
            is_active=is_active,
            form_fields=FORM_FIELDS if form_fields is None else form_fields,
        )
        db_session.add(event)
        db_session.commit()
        return event

    yield _create_event


@pytest.fixture
def test_event(create_test_event):
    return create_test_event()


@pytest.fixture
def valid_form_data():
    return {
        'full_name': 'Jane Doe',
        'email': 'jane.doe@example.com',
        'phone': '+1 (555) 123-4567',
        'tshirt': 'M',
        'workshops': ['A', 'C'],
        'newsletter': True,
        'notes': '',
        'rodo': True,
    }


@pytest.fixture
def test_registration(db_session, test_event, valid_form_data):
    result = registration_crud.register(db_session, test_event.id, valid_form_data)
    return result.registration
