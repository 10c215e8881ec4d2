"""
Base repository with generic CRUD operations.
Repositories only flush; the calling service owns commit/rollback so that
multi-entity operations stay in one transaction.
"""
from typing import TypeVar, Generic, Type, Optional, Any
from datetime import datetime

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def create(self, obj_in: dict) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**obj_in)
        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj

    async def get(self, id: Any) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def get_for_update(self, id: Any) -> Optional[ModelType]:
        """Get a record by ID, re-reading it from the database and locking the row where supported."""
        query = select(self.model).where(self.model.id == id).with_for_update()
        result = await self.session.exec(query.execution_options(populate_existing=True))
        return result.first()

    async def update(self, db_obj: ModelType, obj_in: dict) -> ModelType:
        """Apply field updates to a loaded record."""
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        if hasattr(db_obj, 'updated_at'):
            db_obj.updated_at = datetime.utcnow()

        self.session.add(db_obj)
        await self.session.flush()
        return db_obj
