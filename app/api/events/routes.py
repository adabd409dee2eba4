from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.api.events import schemas
from app.api.events.crud import event as event_crud
from app.core.database import get_db
from app.core.security import TokenData, get_current_user, require_admin

router = APIRouter()


@router.post('/', response_model=schemas.Event, status_code=status.HTTP_201_CREATED)
def create_event(
    event: schemas.EventCreate,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return event_crud.create(db=db, obj=event, user=current_user)


@router.get('/', response_model=list[schemas.Event])
def get_events(
    current_user: TokenData = Depends(get_current_user),
    filters: schemas.EventFilter = Depends(),
    skip: int = 0,
    limit: int = 100,
    sort_by: str = Query(default='date', description='Field to sort by'),
    sort_order: str = Query(default='desc', pattern='^(asc|desc)$'),
    db: Session = Depends(get_db),
):
    return event_crud.find(
        db=db,
        skip=skip,
        limit=limit,
        filters=filters,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get('/active', response_model=list[schemas.Event])
def get_active_events(db: Session = Depends(get_db)):
    return event_crud.find_active(db=db)


@router.get('/slug/{slug}', response_model=schemas.Event)
def get_event_by_slug(slug: str, db: Session = Depends(get_db)):
    db_event = event_crud.get_by_slug(db=db, slug=slug)
    if db_event is None or not db_event.is_active:
        raise HTTPException(status_code=404, detail='Event not found')
    return db_event


@router.get('/{event_id}', response_model=schemas.Event)
def get_event(
    event_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return event_crud.get(db=db, id=event_id, user=current_user)


@router.get('/{event_id}/form', response_model=schemas.EventForm)
def get_event_form(event_id: int, db: Session = Depends(get_db)):
    return event_crud.get_form(db=db, id=event_id)


@router.put('/{event_id}', response_model=schemas.Event)
def update_event(
    event_id: int,
    event: schemas.EventUpdate,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return event_crud.update(db=db, id=event_id, obj=event, user=current_user)


@router.delete('/{event_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int,
    current_user: TokenData = Depends(require_admin),
    db: Session = Depends(get_db),
):
    event_crud.delete(db=db, id=event_id, user=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
