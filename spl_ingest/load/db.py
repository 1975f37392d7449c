from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from spl_ingest.config import IngestSettings, get_database_url

# Register the tables on SQLModel.metadata
from spl_ingest.load import schema  # noqa: F401


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> AsyncEngine:
    return create_async_engine(database_url or get_database_url(), echo=echo, future=True)


def engine_from_settings(settings: IngestSettings) -> AsyncEngine:
    return make_engine(settings.database_url, echo=settings.echo_sql)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db_and_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
