from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.registrations import schemas
from app.api.registrations.crud import registration as registration_crud
from app.core.database import get_db
from app.core.qr import generate_qr_png
from app.core.security import TokenData, get_current_user, require_admin

router = APIRouter()


@router.post(
    '/{event_id}/registrations',
    response_model=schemas.RegistrationResult,
    status_code=status.HTTP_201_CREATED,
)
def register_for_event(
    event_id: int,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    return registration_crud.register(db=db, event_id=event_id, data=data)


@router.get('/{event_id}/registrations', response_model=list[schemas.Registration])
def get_registrations(
    event_id: int,
    filters: schemas.RegistrationFilter = Depends(),
    skip: int = 0,
    limit: int = 100,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return registration_crud.find_by_event(
        db=db,
        event_id=event_id,
        filters=filters,
        skip=skip,
        limit=limit,
    )


@router.get('/{event_id}/registrations/export')
def export_registrations(
    event_id: int,
    export_format: schemas.ExportFormat = schemas.ExportFormat.PLAIN,
    with_check_in: bool = False,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    csv_data = registration_crud.export_csv(
        db=db,
        event_id=event_id,
        export_format=export_format,
        with_check_in=with_check_in,
    )
    filename = f'event-{event_id}-registrations.csv'
    return Response(
        content=csv_data,
        media_type='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@router.get(
    '/{event_id}/registrations/{registration_id}',
    response_model=schemas.Registration,
)
def get_registration(
    event_id: int,
    registration_id: str,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return registration_crud.get_for_event(
        db=db, event_id=event_id, registration_id=registration_id
    )


@router.get('/{event_id}/registrations/{registration_id}/qr.png')
def get_registration_qr(
    event_id: int,
    registration_id: str,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    registration = registration_crud.get_for_event(
        db=db, event_id=event_id, registration_id=registration_id
    )
    return Response(
        content=generate_qr_png(registration.check_in_token),
        media_type='image/png',
    )


@router.delete(
    '/{event_id}/registrations/{registration_id}',
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_registration(
    event_id: int,
    registration_id: str,
    current_user: TokenData = Depends(require_admin),
    db: Session = Depends(get_db),
):
    registration_crud.delete_registration(
        db=db,
        event_id=event_id,
        registration_id=registration_id,
        user=current_user,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
