"""
Generic async repository shared by the Credential Store and Property Store.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from marketplace.database import Base
from typing import TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Lookup, create and save by primary key for one model.

    Every write commits immediately. A failed write is rolled back, logged
    and re-raised for the service layer to translate.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def name(self) -> str:
        return self.model.__name__

    async def _commit(self, db_obj: ModelType, action: str) -> ModelType:
        """Commit the session and reload `db_obj` so server defaults are visible."""
        try:
            await self.db.commit()
            await self.db.refresh(db_obj)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action} {self.name}: {e}")
            raise
        logger.debug(f"{action.capitalize()}d {self.name} {db_obj.id}")
        return db_obj

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Insert a record built from column values.

        Args:
            obj_in: Column name to value mapping

        Returns:
            The persisted instance
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        return await self._commit(db_obj, "create")

    async def save(self, db_obj: ModelType) -> ModelType:
        """Persist attribute changes made on a loaded instance."""
        return await self._commit(db_obj, "save")

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        obj = result.scalar_one_or_none()
        logger.debug(f"{self.name} {id} {'found' if obj else 'not found'}")
        return obj

    async def exists(self, id: uuid.UUID) -> bool:
        query = select(func.count(self.model.id)).where(self.model.id == id)
        return (await self.db.execute(query)).scalar_one() > 0
