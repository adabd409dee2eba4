import logging
import sys

from app.core.config import settings

LOG_FORMAT = '%(asctime)s %(levelname)s [%(module)s] %(message)s'

logger = logging.getLogger('event-check-in')
logger.setLevel(settings.LOG_LEVEL)
logger.propagate = False

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
