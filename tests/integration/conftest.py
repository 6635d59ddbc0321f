import typing as t
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from ticket_engine.core import config
from ticket_engine.core.database import Base, make_async_engine, make_sessionmaker


@pytest.fixture(autouse=True)
def unsigned_tokens(mocker):
    mocker.patch.object(config, "TOKEN_SIGNING_KEY", None)


@pytest_asyncio.fixture
async def engine(tmp_path) -> t.AsyncIterator[AsyncEngine]:
    """File backed SQLite so concurrent sessions really use separate connections."""
    eng = make_async_engine(f"sqlite:///{tmp_path / 'tickets.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(sessionmaker) -> t.AsyncIterator[AsyncSession]:
    async with sessionmaker() as session:
        yield session
