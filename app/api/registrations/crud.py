import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase
from app.api.email_logs.crud import email_log as email_log_crud
from app.api.events.crud import event as event_crud
from app.api.events.form_schema import FormValidationError, compile_form_schema
from app.api.events.models import Event
from app.api.registrations import models, schemas
from app.core.exceptions.registration_exceptions import (
    FormValidationFailed,
    RegistrationNotFound,
    StorageUnavailable,
)
from app.core.logger import logger
from app.core.security import TokenData
from app.core.utils import current_time, generate_id

EXPORT_DELIMITER = '|'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        return '; '.join(str(v) for v in value)
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if value is None:
        return ''
    return str(value)


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime(DATE_FORMAT) if value else 'N/A'


class CRUDRegistration(
    CRUDBase[
        models.Registration,
        schemas.InternalRegistrationCreate,
        schemas.InternalRegistrationCreate,
    ]
):
    def get_for_event(
        self, db: Session, event_id: int, registration_id: str
    ) -> models.Registration:
        registration = (
            db.query(self.model)
            .filter(self.model.id == registration_id, self.model.event_id == event_id)
            .first()
        )
        if not registration:
            logger.error(
                'Registration %s not found in event %s', registration_id, event_id
            )
            raise RegistrationNotFound(registration_id)
        return registration

    def get_by_token(
        self, db: Session, event_id: int, token: str
    ) -> Optional[models.Registration]:
        return (
            db.query(self.model)
            .filter(self.model.event_id == event_id, self.model.check_in_token == token)
            .first()
        )

    def find_by_event(
        self,
        db: Session,
        event_id: int,
        filters: Optional[schemas.RegistrationFilter] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Registration]:
        event_crud.get(db, event_id)
        query = db.query(self.model).filter(self.model.event_id == event_id)
        query = self._apply_filters(query, filters)
        return (
            query.order_by(self.model.submitted_at.desc()).offset(skip).limit(limit).all()
        )

    def _create_with_token(
        self, db: Session, event: Event, form_data: Dict[str, Any]
    ) -> models.Registration:
        obj = schemas.InternalRegistrationCreate(
            id=generate_id('reg'),
            event_id=event.id,
            form_data=form_data,
            check_in_token=generate_id('qr'),
            submitted_at=current_time(),
        )
        registration = models.Registration(**obj.model_dump())
        token = models.CheckInToken(
            token=obj.check_in_token,
            event_id=event.id,
            registration_id=obj.id,
        )
        try:
            db.add_all([registration, token])
            db.commit()
        except (IntegrityError, OperationalError) as e:
            db.rollback()
            logger.error('Could not store registration for event %s: %s', event.id, e)
            raise StorageUnavailable(str(e.orig))

        db.refresh(registration)
        return registration

    def register(
        self,
        db: Session,
        event_id: int,
        data: Dict[str, Any],
    ) -> schemas.RegistrationResult:
        event = event_crud.get(db, event_id)
        compiled = compile_form_schema(event.get_form_fields())
        try:
            form_data = compiled.validate(data)
        except FormValidationError as e:
            logger.info('Invalid registration for event %s: %s', event_id, e.errors)
            raise FormValidationFailed(e.errors)

        registration = self._create_with_token(db, event, form_data)
        logger.info('Registration %s created for event %s', registration.id, event_id)

        notification = email_log_crud.send_registration_confirmation(
            db, registration, event
        )
        logger.info(
            'Confirmation for registration %s: %s',
            registration.id,
            notification.status.value,
        )
        return schemas.RegistrationResult(
            success=True,
            registration=schemas.Registration.model_validate(registration),
            email_status=notification.status,
            email_error=notification.reason,
        )

    def delete_registration(
        self, db: Session, event_id: int, registration_id: str, user: TokenData
    ) -> models.Registration:
        registration = self.get_for_event(db, event_id, registration_id)
        logger.info('User %s deletes registration %s', user.email, registration.id)
        try:
            if registration.token:
                db.delete(registration.token)
            db.delete(registration)
            db.commit()
        except OperationalError as e:
            db.rollback()
            raise StorageUnavailable(str(e.orig))
        return registration

    def export_csv(
        self,
        db: Session,
        event_id: int,
        export_format: schemas.ExportFormat = schemas.ExportFormat.PLAIN,
        with_check_in: bool = False,
    ) -> str:
        event = event_crud.get(db, event_id)
        registrations = (
            db.query(self.model)
            .filter(self.model.event_id == event_id)
            .order_by(self.model.submitted_at.asc())
            .all()
        )
        if not registrations:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='No registrations to export for this event.',
            )

        fields = event.get_form_fields()
        header = ['Registration Date'] + [f.label for f in fields]
        if with_check_in:
            header += ['Checked-In Status', 'Check-In Time']

        output = io.StringIO()
        if export_format == schemas.ExportFormat.EXCEL:
            output.write(f'sep={EXPORT_DELIMITER}\n')

        writer = csv.writer(output, delimiter=EXPORT_DELIMITER, lineterminator='\n')
        writer.writerow(header)
        for registration in registrations:
            row = [_format_date(registration.submitted_at)]
            row += [_format_value(registration.form_data.get(f.name)) for f in fields]
            if with_check_in:
                row.append('YES' if registration.checked_in else 'NO')
                row.append(
                    _format_date(registration.check_in_time)
                    if registration.checked_in
                    else 'N/A'
                )
            writer.writerow(row)

        return output.getvalue()


registration = CRUDRegistration(models.Registration)
