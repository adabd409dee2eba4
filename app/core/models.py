# Import all models here to ensure SQLAlchemy can set up relationships correctly
from app.api.email_logs.models import EmailLog
from app.api.events.models import Event
from app.api.registrations.models import CheckInToken, Registration

# Re-export all models
__all__ = [
    'CheckInToken',
    'EmailLog',
    'Event',
    'Registration',
]
