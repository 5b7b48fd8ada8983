"""
Base repository pattern implementation for clean data access layer.
Provides common CRUD operations and query patterns.
"""
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func

from app.database.base import Base

# Generic type for models
ModelType = TypeVar('ModelType', bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository providing common database operations for one model.
    Used directly for the lookup tables and users, subclassed for recipes.
    """

    def __init__(self, db_session: AsyncSession, model: Type[ModelType]):
        self.db = db_session
        self.model = model

    def _filtered(self, query, filters: Optional[Dict[str, Any]]):
        if filters:
            conditions = [
                getattr(self.model, key) == value
                for key, value in filters.items()
                if hasattr(self.model, key)
            ]
            if conditions:
                query = query.where(and_(*conditions))
        return query

    async def get_by_id(self, entity_id: str, options: Optional[List[Any]] = None) -> Optional[ModelType]:
        """
        Get entity by ID.

        Args:
            entity_id: Entity id
            options: Optional loader options (e.g. selectinload)

        Returns:
            Entity or None if not found
        """
        query = select(self.model).where(self.model.id == entity_id)
        if options:
            query = query.options(*options)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Any = None,
    ) -> List[ModelType]:
        """
        Get all entities with optional filtering and pagination.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            filters: Optional equality filters by attribute name
            order_by: Optional ordering clause

        Returns:
            List of entities
        """
        query = self._filtered(select(self.model), filters)
        if order_by is not None:
            query = query.order_by(order_by)
        query = query.offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_one(self, **filters: Any) -> Optional[ModelType]:
        query = self._filtered(select(self.model), filters).limit(1)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, entity: ModelType) -> ModelType:
        """
        Create a new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity
        """
        self.db.add(entity)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    async def update(self, entity_id: str, updates: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update an entity by ID.

        Args:
            entity_id: Entity id
            updates: Dictionary of updates

        Returns:
            Updated entity or None if not found
        """
        entity = await self.get_by_id(entity_id)
        if not entity:
            return None

        # Apply updates
        for key, value in updates.items():
            if hasattr(entity, key):
                setattr(entity, key, value)

        # Update timestamp if model has it
        if hasattr(entity, 'updated_at'):
            entity.updated_at = datetime.utcnow()

        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity_id: str) -> bool:
        """
        Delete an entity by ID.

        Args:
            entity_id: Entity id

        Returns:
            True if deleted, False if not found
        """
        entity = await self.get_by_id(entity_id)
        if not entity:
            return False

        await self.db.delete(entity)
        await self.db.commit()
        return True

    async def exists(self, entity_id: str) -> bool:
        query = select(func.count()).select_from(self.model).where(self.model.id == entity_id)
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count entities with optional filtering.

        Args:
            filters: Optional equality filters by attribute name

        Returns:
            Count of entities
        """
        query = self._filtered(select(func.count()).select_from(self.model), filters)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def count_since(self, since: datetime) -> int:
        """Count entities created at or after the given time."""
        query = select(func.count()).select_from(self.model).where(self.model.created_at >= since)
        result = await self.db.execute(query)
        return result.scalar() or 0
