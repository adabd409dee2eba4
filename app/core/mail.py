from typing import Any, Dict, List, Optional

import requests

from app.api.email_logs.schemas import EmailAttachment, EmailStatus
from app.core.config import Environment, settings
from app.core.logger import logger

POSTMARK_URL = 'https://api.postmarkapp.com/email/withTemplate'


def build_message(
    receiver_mail: str,
    template: str,
    params: Dict[str, Any],
    attachments: Optional[List[EmailAttachment]] = None,
) -> Dict[str, Any]:
    """Postmark template message; attachments use Postmark's field names."""
    message = {
        'From': f'{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>',
        'To': receiver_mail,
        'TemplateAlias': template,
        'TemplateModel': params,
    }
    if settings.EMAIL_REPLY_TO:
        message['ReplyTo'] = settings.EMAIL_REPLY_TO
    if attachments:
        message['Attachments'] = [a.model_dump(by_alias=True) for a in attachments]
    return message


def send_mail(
    receiver_mail: str,
    *,
    template: str,
    params: Dict[str, Any],
    attachments: Optional[List[EmailAttachment]] = None,
) -> Dict[str, Any]:
    message = build_message(receiver_mail, template, params, attachments)
    if settings.ENVIRONMENT == Environment.TEST:
        logger.debug('Test environment, not sending %s to %s', template, receiver_mail)
        return {'status': EmailStatus.SUCCESS}

    logger.info('Sending %s email to %s', template, receiver_mail)
    response = requests.post(
        POSTMARK_URL,
        json=message,
        headers={
            'Accept': 'application/json',
            'X-Postmark-Server-Token': settings.POSTMARK_API_TOKEN,
        },
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    logger.info('Postmark accepted %s email to %s', template, receiver_mail)

    return {'status': EmailStatus.SUCCESS, 'response': response.json()}
