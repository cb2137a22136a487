import pytest
from sqlalchemy.pool import StaticPool

from shared.database import Base, get_engine, get_session
from match_service import models  # noqa: F401  registers tables on Base.metadata
from match_service.cache import MemoryCache


@pytest.fixture
async def engine():
    engine = get_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session(engine)


@pytest.fixture
def add_guides(session_factory):
    async def _add(*guides):
        async with session_factory() as db:
            db.add_all(guides)
            await db.commit()

    return _add


@pytest.fixture
def cache():
    return MemoryCache()
