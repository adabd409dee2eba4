from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from app.api.check_in import schemas
from app.api.check_in.crud import check_in as check_in_crud
from app.api.registrations.schemas import Registration
from app.core.database import get_db
from app.core.qr import decode_qr_image
from app.core.security import TokenData, require_admin, verify_check_in_api_key

router = APIRouter()


@router.post(
    '/qr',
    response_model=schemas.CheckInResponse,
    dependencies=[Depends(verify_check_in_api_key)],
)
def new_qr_check_in(
    check_in: schemas.NewQRCheckIn,
    db: Session = Depends(get_db),
):
    return check_in_crud.new_qr_check_in(
        db=db,
        event_id=check_in.event_id,
        code=check_in.code,
    )


@router.post(
    '/qr-image',
    response_model=schemas.CheckInResponse,
    dependencies=[Depends(verify_check_in_api_key)],
)
def new_qr_image_check_in(
    event_id: int = Form(...),
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    code = decode_qr_image(image.file.read())
    return check_in_crud.new_qr_check_in(db=db, event_id=event_id, code=code)


@router.put('/{event_id}/registrations/{registration_id}', response_model=Registration)
def set_check_in_status(
    event_id: int,
    registration_id: str,
    toggle: schemas.CheckInToggle,
    current_user: TokenData = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return check_in_crud.set_check_in_status(
        db=db,
        event_id=event_id,
        registration_id=registration_id,
        checked_in=toggle.checked_in,
        user=current_user,
    )
