from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase
from app.api.events.crud import event as event_crud
from app.api.registrations.crud import registration as registration_crud
from app.api.registrations.models import Registration
from app.core.exceptions.registration_exceptions import StorageUnavailable
from app.core.logger import logger
from app.core.security import TokenData
from app.core.utils import current_time

from . import schemas


def _already_checked_in(registration: Registration) -> schemas.CheckInResponse:
    checked_at = registration.check_in_time
    message = 'Already checked in.'
    if checked_at:
        message = f'Already checked in at {checked_at:%Y-%m-%d %H:%M:%S}.'
    return schemas.CheckInResponse(
        success=False,
        status=schemas.CheckInStatus.ALREADY_CHECKED_IN,
        message=message,
        registration_id=registration.id,
        attendee_name=registration.attendee_name,
        check_in_time=registration.check_in_time,
    )


class CRUDCheckIn(CRUDBase[Registration, schemas.CheckInToggle, schemas.CheckInToggle]):
    def _mark_checked_in(self, db: Session, registration: Registration) -> bool:
        """Flip checked_in only if it is still false. True when this call won."""
        updated = (
            db.query(self.model)
            .filter(
                self.model.id == registration.id,
                self.model.checked_in.is_(False),
            )
            .update(
                {
                    self.model.checked_in: True,
                    self.model.check_in_time: current_time(),
                },
                synchronize_session=False,
            )
        )
        db.commit()
        db.refresh(registration)
        return updated == 1

    def new_qr_check_in(
        self,
        db: Session,
        event_id: int,
        code: str,
    ) -> schemas.CheckInResponse:
        event_crud.get(db, event_id)
        try:
            registration = registration_crud.get_by_token(db, event_id, code)
            if not registration:
                logger.error('No registration with code %s in event %s', code, event_id)
                return schemas.CheckInResponse(
                    success=False,
                    status=schemas.CheckInStatus.NOT_FOUND,
                    message='Registration not found.',
                )

            if registration.checked_in:
                logger.info('Registration %s already checked in', registration.id)
                return _already_checked_in(registration)

            if not self._mark_checked_in(db, registration):
                logger.info('Registration %s checked in concurrently', registration.id)
                return _already_checked_in(registration)
        except OperationalError as e:
            db.rollback()
            logger.error('Storage error checking in code %s: %s', code, str(e))
            raise StorageUnavailable(str(e.orig))

        logger.info('Registration %s checked in', registration.id)
        return schemas.CheckInResponse(
            success=True,
            status=schemas.CheckInStatus.CHECKED_IN,
            message='Check-in successful!',
            registration_id=registration.id,
            attendee_name=registration.attendee_name,
            check_in_time=registration.check_in_time,
        )

    def set_check_in_status(
        self,
        db: Session,
        event_id: int,
        registration_id: str,
        checked_in: bool,
        user: TokenData,
    ) -> Registration:
        """Administrative override; bypasses the scan-time guard."""
        registration = registration_crud.get_for_event(db, event_id, registration_id)
        logger.info(
            'User %s sets check-in of %s to %s', user.email, registration.id, checked_in
        )
        registration.checked_in = checked_in
        registration.check_in_time = current_time() if checked_in else None
        try:
            db.commit()
        except OperationalError as e:
            db.rollback()
            raise StorageUnavailable(str(e.orig))
        db.refresh(registration)
        return registration


check_in = CRUDCheckIn(Registration)
