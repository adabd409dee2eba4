import os
from enum import Enum
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Environment(str, Enum):
    TEST = 'test'
    PRODUCTION = 'production'
    DEVELOP = 'develop'


def _get_list(name: str) -> List[str]:
    value = os.getenv(name) or ''
    return [item.strip() for item in value.split(',') if item.strip()]


class Settings:
    ENVIRONMENT: Environment = Environment(os.getenv('ENVIRONMENT') or Environment.TEST)
    LOG_LEVEL: str = (os.getenv('LOG_LEVEL') or 'DEBUG').upper()

    # Storage
    DB_USERNAME: str = os.getenv('DB_USERNAME')
    DB_PASSWORD: str = os.getenv('DB_PASSWORD')
    DB_HOST: str = os.getenv('DB_HOST')
    DB_PORT: str = os.getenv('DB_PORT')
    DB_NAME: str = os.getenv('DB_NAME')
    SQLALCHEMY_TEST_DATABASE_URL = 'sqlite:///:memory:'
    if ENVIRONMENT == Environment.TEST:
        DATABASE_URL: str = SQLALCHEMY_TEST_DATABASE_URL
    else:
        DATABASE_URL: str = os.getenv('DATABASE_URL') or (
            f'postgresql://{DB_USERNAME}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}'
        )

    # Confirmation mail (Postmark)
    POSTMARK_API_TOKEN: str = os.getenv('POSTMARK_API_TOKEN')
    EMAIL_FROM_ADDRESS: str = os.getenv('EMAIL_FROM_ADDRESS')
    EMAIL_FROM_NAME: str = os.getenv('EMAIL_FROM_NAME')
    EMAIL_REPLY_TO: str = os.getenv('EMAIL_REPLY_TO')
    EMAIL_TIMEOUT_SECONDS: int = int(os.getenv('EMAIL_TIMEOUT_SECONDS') or 10)

    # Staff tokens and check-in stations
    SECRET_KEY: str = os.getenv('SECRET_KEY', '')
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES') or 60 * 12
    )
    CHECK_IN_API_KEY: str = os.getenv('CHECK_IN_API_KEY')

    # Public site serving the registration forms
    FRONTEND_URL: str = os.getenv('FRONTEND_URL')
    CORS_ORIGINS: List[str] = _get_list('CORS_ORIGINS') or ['*']

    QR_BOX_SIZE: int = int(os.getenv('QR_BOX_SIZE') or 10)


settings = Settings()
