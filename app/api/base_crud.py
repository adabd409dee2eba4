from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

import psycopg2
from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.declarative import DeclarativeMeta
from sqlalchemy.orm import Query, Session

from app.core.exceptions.registration_exceptions import StorageUnavailable
from app.core.logger import logger
from app.core.security import StaffRole, TokenData

ModelType = TypeVar('ModelType', bound=DeclarativeMeta)
CreateSchemaType = TypeVar('CreateSchemaType', bound=BaseModel)
UpdateSchemaType = TypeVar('UpdateSchemaType', bound=BaseModel)

STAFF_ROLES = (StaffRole.ADMINISTRATOR, StaffRole.ORGANIZER)


def conflict_detail(resource: str, error: IntegrityError) -> str:
    """Human readable message for a unique constraint violation."""
    orig = str(error.orig)
    if isinstance(error.orig, psycopg2.errors.UniqueViolation) and 'DETAIL' in orig:
        # DETAIL:  Key (slug)=(spring-meetup) already exists.
        error_detail = orig.split('DETAIL: ')[1].split('\n')[0].strip()
        if '(' in error_detail and ')' in error_detail:
            keys = error_detail.split('(')[1].split(')')[0]
            return f'A {resource} with this {keys} already exists'
    if 'UNIQUE constraint failed' in orig:
        column = orig.split('UNIQUE constraint failed: ')[-1].split('.')[-1]
        return f'A {resource} with this {column} already exists'
    return 'Integrity error'


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _check_permission(self, db_obj: ModelType, user: TokenData) -> bool:
        """Override this method to implement permission checks"""
        return user.role in STAFF_ROLES

    def _apply_filters(
        self, query: Query, filters: Optional[BaseModel] = None
    ) -> Query:
        if not filters:
            return query

        for field, value in filters.model_dump(exclude_none=True).items():
            if hasattr(self.model, field):
                query = query.filter(getattr(self.model, field) == value)
        return query

    def _dump_for_create(self, obj: CreateSchemaType) -> Dict[str, Any]:
        return obj.model_dump()

    def create(
        self,
        db: Session,
        obj: CreateSchemaType,
        user: Optional[TokenData] = None,
    ) -> ModelType:
        """Insert a record built from the schema's mapped columns."""
        columns = self.model.__table__.columns.keys()
        data = {k: v for k, v in self._dump_for_create(obj).items() if k in columns}
        db_obj = self.model(**data)
        try:
            db.add(db_obj)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            detail = conflict_detail(self.model.__name__, e)
            logger.error('Error creating %s: %s', self.model.__name__, detail)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
        except OperationalError as e:
            db.rollback()
            logger.error('Storage error creating %s: %s', self.model.__name__, str(e))
            raise StorageUnavailable(str(e.orig))

        db.refresh(db_obj)
        return db_obj

    def get(
        self, db: Session, id: Union[int, str], user: Optional[TokenData] = None
    ) -> ModelType:
        """Get a single record by id with permission check."""
        obj = db.query(self.model).filter(self.model.id == id).first()
        if not obj:
            logger.error('%s %s not found', self.model.__name__, id)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f'{self.model.__name__} not found',
            )
        if user and not self._check_permission(obj, user):
            err_msg = f'Not authorized to access this {self.model.__name__}: {obj.id}'
            logger.error(err_msg)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=err_msg)
        return obj

    def find(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[BaseModel] = None,
        sort_by: str = 'created_at',
        sort_order: str = 'desc',
    ) -> List[ModelType]:
        """Get multiple records with pagination, filters and sorting."""
        if not hasattr(self.model, sort_by):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Invalid sort field: {sort_by}',
            )

        order_by = getattr(self.model, sort_by)
        if sort_order == 'desc':
            order_by = order_by.desc()

        query = self._apply_filters(db.query(self.model), filters)
        return query.order_by(order_by).offset(skip).limit(limit).all()
