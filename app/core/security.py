from datetime import timedelta
from enum import Enum
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.core.config import settings
from app.core.logger import logger
from app.core.utils import current_time


class StaffRole(str, Enum):
    ADMINISTRATOR = 'Administrator'
    ORGANIZER = 'Organizer'


class TokenData(BaseModel):
    user_id: int
    email: str
    role: StaffRole


ALGORITHM = 'HS256'

# Internal operations run with administrator rights under user_id=0
SYSTEM_TOKEN = TokenData(user_id=0, email='', role=StaffRole.ADMINISTRATOR)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl='auth/token')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expires_delta = expires_delta or timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({'exp': current_time() + expires_delta})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenData:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail='Could not validate credentials',
        headers={'WWW-Authenticate': 'Bearer'},
    )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.error('Token has expired')
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Token has expired',
            headers={'WWW-Authenticate': 'Bearer'},
        )
    except JWTError as e:
        logger.error('Error decoding token: %s', str(e))
        raise credentials_exception

    user_id = payload.get('user_id')
    email = payload.get('email')
    if user_id is None or email is None:
        logger.error('Invalid token payload: %s', payload)
        raise credentials_exception
    try:
        role = StaffRole(payload.get('role'))
    except ValueError:
        logger.error('Unknown staff role in token: %s', payload.get('role'))
        raise credentials_exception

    return TokenData(user_id=user_id, email=email, role=role)


def require_admin(current_user: TokenData = Depends(get_current_user)) -> TokenData:
    if current_user.role != StaffRole.ADMINISTRATOR:
        logger.error('User %s is not an administrator', current_user.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Administrator role required',
        )
    return current_user


def verify_check_in_api_key(x_api_key: str = Header(...)) -> None:
    if not settings.CHECK_IN_API_KEY or x_api_key != settings.CHECK_IN_API_KEY:
        raise HTTPException(status_code=403, detail='Invalid API key')
