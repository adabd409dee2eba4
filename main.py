from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from app.api.check_in.routes import router as check_in_router
from app.api.events.routes import router as events_router
from app.api.registrations.routes import router as registrations_router
from app.core import models  # noqa: F401
from app.core.config import Environment, settings
from app.core.database import create_db
from app.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.ENVIRONMENT != Environment.TEST:
        create_db()
    logger.info('Event check-in API started (%s)', settings.ENVIRONMENT.value)
    yield


app = FastAPI(title='Event Check-In API', lifespan=lifespan)

app.include_router(events_router, prefix='/events', tags=['Events'])
# Registrations are nested under their event
app.include_router(registrations_router, prefix='/events', tags=['Registrations'])
app.include_router(check_in_router, prefix='/check-in', tags=['Check In'])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.get('/', include_in_schema=False)
def ping():
    return Response(status_code=200)
