from typing import Generic, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)


def generate_frontend_id(db: Session, model: Type[Base], prefix: str) -> str:
    """
    Next human-readable id for ``model``: PREFIX-00001, PREFIX-00002, etc.
    The counter continues from the highest id already stored.
    """
    max_counter = 0
    for (value,) in db.query(model.frontend_id).filter(model.frontend_id.like(f"{prefix}-%")).all():
        try:
            max_counter = max(max_counter, int(value.split("-")[1]))
        except (ValueError, IndexError):
            continue
    return f"{prefix}-{max_counter + 1:05d}"


class CRUDBase(Generic[ModelType, CreateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        """
        CRUD object with the shared lookup by primary key.

        Status changes go through the subclasses so every transition is
        validated; there is no generic update.

        **Parameters**

        * `model`: A SQLAlchemy model class
        """
        self.model = model

    def get(self, db: Session, id: UUID) -> Optional[ModelType]:
        return db.query(self.model).filter(self.model.id == id).first()
