"""
Base Repository.

Primary-key lookup and insert, shared by every repository. Scoped or
conditional mutations are written on the concrete repository as single
statements.
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.exceptions import NotFoundError
from notesphere.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Subclasses bind the mapped class:

        class UserRepository(BaseRepository[User]):
            model = User
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def dialect_name(self) -> str:
        """'sqlite' or 'postgresql'; search and stats SQL differ between them."""
        return self.session.get_bind().dialect.name

    async def get_by_id(self, id: str | UUID) -> ModelType:
        """
        Raises:
            NotFoundError: If no row has this primary key
        """
        instance = await self.session.get(self.model, str(id))
        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return instance

    async def create(self, **values: Any) -> ModelType:
        return await self.add(self.model(**values))

    async def add(self, instance: ModelType) -> ModelType:
        """Insert, flush and reload server-side defaults."""
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance
