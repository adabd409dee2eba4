from typing import List, Optional

import requests
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase
from app.api.email_logs import models, schemas
from app.api.email_logs.schemas import (
    EmailAttachment,
    EmailLogCreate,
    EmailStatus,
    EmailTemplate,
    NotificationResult,
    NotificationStatus,
)
from app.api.events.models import Event
from app.api.registrations.models import Registration
from app.core.config import settings
from app.core.exceptions.mail_exceptions import NotificationFailed
from app.core.logger import logger
from app.core.mail import send_mail
from app.core.qr import generate_qr_base64


def generate_qr_attachment(check_in_token: str, attendee_name: Optional[str]):
    logger.info('Generating QR code for %s %s', check_in_token, attendee_name)
    return EmailAttachment(
        name='qr.png',
        content_id='cid:qr.png',
        content=generate_qr_base64(check_in_token),
        content_type='image/png',
    )


class CRUDEmailLog(
    CRUDBase[models.EmailLog, schemas.EmailLogCreate, schemas.EmailLogCreate]
):
    def get_by_registration(
        self, db: Session, registration_id: str
    ) -> List[models.EmailLog]:
        return (
            db.query(self.model)
            .filter(self.model.registration_id == registration_id)
            .order_by(self.model.created_at.asc())
            .all()
        )

    def _log(self, db: Session, email_log_data: EmailLogCreate) -> None:
        # A broken log write must not hide the delivery outcome
        try:
            self.create(db, obj=email_log_data)
        except HTTPException as db_error:
            db.rollback()
            logger.error('Failed to log email: %s', db_error.detail)

    def send_mail(
        self,
        db: Session,
        receiver_mail: str,
        *,
        template: EmailTemplate,
        params: dict,
        event_id: Optional[int] = None,
        registration_id: Optional[str] = None,
        attachments: Optional[List[EmailAttachment]] = None,
    ) -> dict:
        """
        Send a template mail and record the attempt in email_logs.

        Delivery errors are raised as NotificationFailed after being logged.
        """
        params = {**params, 'portal_url': settings.FRONTEND_URL}
        status = EmailStatus.FAILED
        error_message = None
        try:
            response_data = send_mail(
                receiver_mail,
                template=template.value,
                params=params,
                attachments=attachments,
            )
            status = response_data['status']
            return response_data
        except (requests.exceptions.RequestException, ValueError) as e:
            error_message = str(e)
            logger.error(
                'Failed to send %s email to %s: %s', template.value, receiver_mail, e
            )
            raise NotificationFailed(error_message) from e
        finally:
            self._log(
                db,
                EmailLogCreate(
                    receiver_email=receiver_mail,
                    template=template,
                    params=params,
                    status=status,
                    error_message=error_message,
                    event_id=event_id,
                    registration_id=registration_id,
                ),
            )

    def send_registration_confirmation(
        self,
        db: Session,
        registration: Registration,
        event: Event,
    ) -> NotificationResult:
        receiver_mail = registration.contact_email(event.get_form_fields())
        if not receiver_mail:
            logger.info('Registration %s has no contact address', registration.id)
            return NotificationResult(status=NotificationStatus.NO_ADDRESS)

        attendee_name = registration.attendee_name
        params = {
            'name': attendee_name or '',
            'event_name': event.name,
            'event_date': event.date.strftime('%Y-%m-%d %H:%M'),
        }
        try:
            attachment = generate_qr_attachment(
                registration.check_in_token, attendee_name
            )
            self.send_mail(
                db,
                receiver_mail,
                template=EmailTemplate.REGISTRATION_CONFIRMED,
                params=params,
                event_id=event.id,
                registration_id=registration.id,
                attachments=[attachment],
            )
        except NotificationFailed as e:
            return NotificationResult(status=NotificationStatus.FAILED, reason=e.reason)
        except Exception as e:
            logger.error('Could not prepare confirmation for %s: %s', registration.id, e)
            return NotificationResult(status=NotificationStatus.FAILED, reason=str(e))

        return NotificationResult(status=NotificationStatus.SENT)


email_log = CRUDEmailLog(models.EmailLog)
