from typing import Dict, List

from fastapi import HTTPException, status


class EventNotFound(HTTPException):
    def __init__(self, event_id):
        super().__init__(status.HTTP_404_NOT_FOUND, f'Event {event_id} not found', None)


class RegistrationNotFound(HTTPException):
    def __init__(self, registration_id: str):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            f'Registration {registration_id} not found',
            None,
        )


class FormValidationFailed(HTTPException):
    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {'message': 'Submitted data is invalid', 'errors': errors},
            None,
        )


class StorageUnavailable(HTTPException):
    def __init__(self, detail=None):
        msg = 'Storage is temporarily unavailable. Please retry.'
        if detail:
            msg = f'{msg} Error detail: {detail}'
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, msg, None)


class InvalidQRCode(HTTPException):
    def __init__(self):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, 'No QR code could be read from the image', None
        )
