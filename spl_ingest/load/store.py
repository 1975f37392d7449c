import logging
from typing import List, Optional, Sequence, Type, TypeVar

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class ContentStore:
    """Thin create/query/bulk-write layer over an AsyncSession.

    Every write commits, so a single create or bulk insert is one unit of work
    and nothing ties two calls together.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.commit()
        return entity

    async def bulk_insert(self, entities: Sequence[ModelT]) -> List[ModelT]:
        entities = list(entities)
        if not entities:
            return entities
        self.session.add_all(entities)
        await self.session.commit()
        logger.debug(f"Bulk inserted {len(entities)} {type(entities[0]).__name__} rows")
        return entities

    async def first(self, model: Type[ModelT], *conditions) -> Optional[ModelT]:
        statement = select(model)
        if conditions:
            statement = statement.where(*conditions)
        result = await self.session.exec(statement)
        return result.first()

    async def all(self, model: Type[ModelT], *conditions, order_by=None) -> List[ModelT]:
        statement = select(model)
        if conditions:
            statement = statement.where(*conditions)
        if order_by is not None:
            statement = statement.order_by(order_by)
        result = await self.session.exec(statement)
        return list(result.all())

    async def rollback(self) -> None:
        await self.session.rollback()
