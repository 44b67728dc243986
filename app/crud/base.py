from typing import Any, Generic, Optional, TypeVar, Type
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from pydantic import BaseModel
from fastapi import HTTPException, status

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Catalog and payment rows. Bookings go through BookingAllocator instead."""

    def __init__(self, model: Type[ModelType], id_field: str = "id"):
        self.model = model
        self.id_field = id_field

    @property
    def pk(self):
        return getattr(self.model, self.id_field)

    def get(self, db: Session, id: int) -> ModelType:
        obj = db.get(self.model, id)
        if obj is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.model.__name__} {id} not found",
            )
        return obj

    def get_all(self, db: Session, skip: int = 0, limit: int = 10, filters: Optional[dict[str, Any]] = None):
        # None means "not filtered"
        conditions = [
            getattr(self.model, key) == value
            for key, value in (filters or {}).items()
            if value is not None
        ]
        return db.query(self.model).filter(*conditions).order_by(self.pk).offset(skip).limit(limit).all()

    def create(self, db: Session, obj_in: CreateSchemaType) -> ModelType:
        obj = self.model(**obj_in.model_dump())
        db.add(obj)
        self._commit(db)
        db.refresh(obj)
        return obj

    def update(self, db: Session, db_obj: ModelType, obj_in: UpdateSchemaType) -> ModelType:
        for key, value in obj_in.model_dump(exclude_unset=True).items():
            setattr(db_obj, key, value)
        self._commit(db)
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, id: int) -> dict:
        db.delete(self.get(db, id))
        self._commit(db)
        return {"detail": f"{self.model.__name__} {id} deleted"}

    def _commit(self, db: Session) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{self.model.__name__} conflicts with existing data: {e.orig}",
            )
