from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase
from app.api.email_logs.models import EmailLog
from app.api.events import models, schemas
from app.api.events.form_schema import compile_form_schema
from app.api.registrations.models import CheckInToken, Registration
from app.core.exceptions.registration_exceptions import (
    EventNotFound,
    StorageUnavailable,
)
from app.core.logger import logger
from app.core.security import TokenData
from app.core.utils import slugify

JSON_COLUMNS = ('form_fields', 'location_types')


class CRUDEvent(CRUDBase[models.Event, schemas.InternalEventCreate, schemas.EventUpdate]):
    def _dump_for_create(self, obj: schemas.InternalEventCreate) -> Dict[str, Any]:
        obj_data = obj.model_dump()
        json_data = obj.model_dump(mode='json', include=set(JSON_COLUMNS))
        obj_data.update(json_data)
        return obj_data

    def _unique_slug(self, db: Session, name: str) -> str:
        base = slugify(name) or 'event'
        slug = base
        suffix = 2
        while db.query(self.model).filter(self.model.slug == slug).first():
            slug = f'{base}-{suffix}'
            suffix += 1
        return slug

    def get(self, db: Session, id: int, user: Optional[TokenData] = None) -> models.Event:
        try:
            event = db.query(self.model).filter(self.model.id == id).first()
        except OperationalError as e:
            db.rollback()
            logger.error('Storage error loading event %s: %s', id, str(e))
            raise StorageUnavailable(str(e.orig))
        if not event:
            logger.error('Event %s not found', id)
            raise EventNotFound(id)
        return event

    def get_by_slug(self, db: Session, slug: str) -> Optional[models.Event]:
        return db.query(self.model).filter(self.model.slug == slug).first()

    def find_active(self, db: Session) -> List[models.Event]:
        return (
            db.query(self.model)
            .filter(self.model.is_active.is_(True))
            .order_by(self.model.date.asc())
            .all()
        )

    def create(
        self,
        db: Session,
        obj: schemas.EventCreate,
        user: TokenData,
    ) -> models.Event:
        slug = self._unique_slug(db, obj.name)
        logger.info('Creating event %s with slug %s', obj.name, slug)
        internal = schemas.InternalEventCreate(
            **obj.model_dump(),
            slug=slug,
            created_by=user.email,
        )
        return super().create(db, internal, user)

    def update(
        self,
        db: Session,
        id: int,
        obj: schemas.EventUpdate,
        user: TokenData,
    ) -> models.Event:
        event = self.get(db, id, user)
        obj_data = obj.model_dump(exclude_unset=True)
        json_data = obj.model_dump(
            mode='json', exclude_unset=True, include=set(JSON_COLUMNS)
        )
        obj_data.update(json_data)

        for field in ('name', 'date', 'rodo', 'form_fields', 'location_types', 'is_active'):
            if field in obj_data and obj_data[field] is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f'{field} cannot be null',
                )

        for field, value in obj_data.items():
            setattr(event, field, value)
        event.updated_by = user.email

        try:
            db.commit()
        except OperationalError as e:
            db.rollback()
            logger.error('Storage error updating event %s: %s', id, str(e))
            raise StorageUnavailable(str(e.orig))
        db.refresh(event)
        logger.info('Event %s updated by %s', event.id, user.email)
        return event

    def delete(self, db: Session, id: int, user: TokenData) -> int:
        """
        Remove the event with its registrations and check-in tokens in one
        transaction. Returns the number of registrations removed.
        """
        self.get(db, id, user)
        try:
            db.query(CheckInToken).filter(CheckInToken.event_id == id).delete()
            deleted = db.query(Registration).filter(Registration.event_id == id).delete()
            # Notification history is kept without its event
            db.query(EmailLog).filter(EmailLog.event_id == id).update(
                {EmailLog.event_id: None}, synchronize_session=False
            )
            db.query(self.model).filter(self.model.id == id).delete()
            db.commit()
        except OperationalError as e:
            db.rollback()
            logger.error('Storage error deleting event %s: %s', id, str(e))
            raise StorageUnavailable(str(e.orig))

        logger.info(
            'Event %s deleted by %s with %s registrations', id, user.email, deleted
        )
        return deleted

    def get_form(self, db: Session, id: int) -> schemas.EventForm:
        event = self.get(db, id)
        fields = event.get_form_fields()
        compiled = compile_form_schema(fields)
        return schemas.EventForm(
            event_id=event.id,
            fields=fields,
            rodo=event.rodo,
            defaults=compiled.default_values(),
        )


event = CRUDEvent(models.Event)
