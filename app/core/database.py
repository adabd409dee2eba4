from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy_utils import create_database, database_exists

from .config import settings
from .logger import logger

Base = declarative_base()


def build_engine(url: str):
    if make_url(url).get_backend_name() == 'sqlite':
        # Sessions are handed across FastAPI's worker threads
        return create_engine(url, connect_args={'check_same_thread': False})
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_db():
    """Create the database if missing, then every table mapped on Base."""
    if not database_exists(engine.url):
        logger.info('Database %s does not exist, creating it', engine.url.database)
        create_database(engine.url)

    from app.core import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info('Tables ready: %s', ', '.join(sorted(Base.metadata.tables)))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
