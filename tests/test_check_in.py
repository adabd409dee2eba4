import threading
from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi import status
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.api.check_in.crud import check_in as check_in_crud
from app.api.check_in.schemas import CheckInStatus
from app.api.events.models import Event
from app.api.registrations.crud import registration as registration_crud
from app.api.registrations.models import Registration
from app.core.database import Base
from app.core.qr import generate_qr_png
from tests.conftest import FORM_FIELDS


def _scan(client, headers, event_id, code):
    return client.post(
        '/check-in/qr',
        json={'event_id': event_id, 'code': code},
        headers=headers,
    )


def test_qr_check_in_success(
    client, check_in_headers, test_event, test_registration, db_session
):
    response = _scan(
        client, check_in_headers, test_event.id, test_registration.check_in_token
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data['success'] is True
    assert data['status'] == CheckInStatus.CHECKED_IN.value
    assert data['attendee_name'] == 'Jane Doe'
    assert data['check_in_time'] is not None

    registration = db_session.get(Registration, test_registration.id)
    assert registration.checked_in is True
    assert registration.check_in_time is not None


def test_second_scan_reports_original_check_in_time(
    client, check_in_headers, test_event, test_registration, db_session
):
    first = _scan(
        client, check_in_headers, test_event.id, test_registration.check_in_token
    )
    second = _scan(
        client, check_in_headers, test_event.id, test_registration.check_in_token
    )

    assert second.status_code == status.HTTP_200_OK
    data = second.json()
    assert data['success'] is False
    assert data['status'] == CheckInStatus.ALREADY_CHECKED_IN.value
    assert data['check_in_time'] == first.json()['check_in_time']
    assert data['registration_id'] == test_registration.id
    assert data['message'].startswith('Already checked in at ')

    registration = db_session.get(Registration, test_registration.id)
    assert registration.checked_in is True


def test_qr_check_in_invalid_api_key(client, test_event, test_registration):
    response = _scan(
        client,
        {'x-api-key': 'invalid_api_key'},
        test_event.id,
        test_registration.check_in_token,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert 'Invalid API key' in response.json()['detail']


def test_qr_check_in_unknown_code(client, check_in_headers, test_event, test_registration):
    response = _scan(client, check_in_headers, test_event.id, 'qr_unknown')

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data['success'] is False
    assert data['status'] == CheckInStatus.NOT_FOUND.value
    assert data['check_in_time'] is None


def test_qr_check_in_code_from_other_event(
    client, check_in_headers, test_registration, create_test_event
):
    other_event = create_test_event(name='Other Event')
    response = _scan(
        client, check_in_headers, other_event.id, test_registration.check_in_token
    )
    assert response.json()['status'] == CheckInStatus.NOT_FOUND.value


def test_qr_check_in_unknown_event(client, check_in_headers):
    response = _scan(client, check_in_headers, 999, 'qr_unknown')
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_qr_check_in_empty_code(client, check_in_headers, test_event):
    response = _scan(client, check_in_headers, test_event.id, '  ')
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_image_check_in(client, check_in_headers, test_event, test_registration):
    png = generate_qr_png(test_registration.check_in_token)
    response = client.post(
        '/check-in/qr-image',
        data={'event_id': str(test_event.id)},
        files={'image': ('qr.png', png, 'image/png')},
        headers=check_in_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()['status'] == CheckInStatus.CHECKED_IN.value


def test_image_check_in_unreadable_image(client, check_in_headers, test_event):
    response = client.post(
        '/check-in/qr-image',
        data={'event_id': str(test_event.id)},
        files={'image': ('qr.png', b'not an image', 'image/png')},
        headers=check_in_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_manual_toggle_undo_and_redo(
    client, admin_headers, check_in_headers, test_event, test_registration
):
    _scan(client, check_in_headers, test_event.id, test_registration.check_in_token)

    url = f'/check-in/{test_event.id}/registrations/{test_registration.id}'
    response = client.put(url, json={'checked_in': False}, headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()['checked_in'] is False
    assert response.json()['check_in_time'] is None

    response = _scan(
        client, check_in_headers, test_event.id, test_registration.check_in_token
    )
    assert response.json()['status'] == CheckInStatus.CHECKED_IN.value

    response = client.put(url, json={'checked_in': True}, headers=admin_headers)
    assert response.json()['checked_in'] is True
    assert response.json()['check_in_time'] is not None


def test_manual_toggle_requires_admin(
    client, auth_headers, test_event, test_registration
):
    response = client.put(
        f'/check-in/{test_event.id}/registrations/{test_registration.id}',
        json={'checked_in': True},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_manual_toggle_unknown_registration(client, admin_headers, test_event):
    response = client.put(
        f'/check-in/{test_event.id}/registrations/reg_unknown',
        json={'checked_in': True},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file database so concurrent connections share state"""
    engine = create_engine(
        f'sqlite:///{tmp_path / "check_in.db"}',
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_concurrent_scans_check_in_exactly_once(file_session_factory, valid_form_data):
    session = file_session_factory()
    event = Event(
        name='Concurrent Event',
        slug='concurrent-event',
        date=datetime(2026, 11, 20, 18, 0),
        rodo='I agree.',
        is_active=True,
        form_fields=FORM_FIELDS,
    )
    session.add(event)
    session.commit()
    registration = registration_crud.register(session, event.id, valid_form_data)
    event_id = event.id
    token = registration.registration.check_in_token
    session.close()

    workers = 8
    barrier = threading.Barrier(workers)
    results = []
    errors = []
    lock = threading.Lock()

    def scan():
        db = file_session_factory()
        try:
            barrier.wait()
            response = check_in_crud.new_qr_check_in(db, event_id, token)
            with lock:
                results.append(response)
        except Exception as e:
            with lock:
                errors.append(e)
        finally:
            db.close()

    threads = [threading.Thread(target=scan) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    statuses = [r.status for r in results]
    assert statuses.count(CheckInStatus.CHECKED_IN) == 1
    assert statuses.count(CheckInStatus.ALREADY_CHECKED_IN) == workers - 1

    winner = next(r for r in results if r.status == CheckInStatus.CHECKED_IN)
    assert all(r.check_in_time == winner.check_in_time for r in results)


def test_storage_failure_during_scan(
    client, check_in_headers, test_event, test_registration, db_session
):
    error = OperationalError('SELECT', {}, Exception('database is down'))
    with patch.object(db_session, 'query', side_effect=error):
        response = _scan(
            client, check_in_headers, test_event.id, test_registration.check_in_token
        )

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert db_session.get(Registration, test_registration.id).checked_in is False
