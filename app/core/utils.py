import re
import unicodedata
import uuid
from datetime import datetime, timezone


def current_time() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id(prefix: str) -> str:
    return f'{prefix}_{uuid.uuid4()}'


def slugify(value: str) -> str:
    value = unicodedata.normalize('NFKD', value)
    value = value.encode('ascii', 'ignore').decode('ascii').lower()
    value = re.sub(r'[^a-z0-9]+', '-', value)
    return value.strip('-')
