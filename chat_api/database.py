from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.engine.url import make_url

from .config import DATABASE_URL, SQL_ECHO


def make_engine(database_url: str = DATABASE_URL, **kwargs) -> AsyncEngine:
    url = make_url(database_url)
    # only SQLite needs that arg
    opts = {"check_same_thread": False} if url.drivername.startswith("sqlite") else {}
    return create_async_engine(
        database_url,
        echo=SQL_ECHO,
        connect_args=opts,
        **kwargs,
    )


def make_session_factory(engine: AsyncEngine):
    return sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )


# Initialize DB (to call on startup)
async def init_db(engine: AsyncEngine):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
