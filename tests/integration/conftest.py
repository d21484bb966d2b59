import pytest
import pytest_asyncio
from decimal import Decimal
from datetime import datetime
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import juice.domain  # noqa: F401  registers the tables on SQLModel.metadata
from juice.adapter.repositories import SqlAlchemyJuiceBalanceRepository
from juice.app.services.chain_client import ChainClientRegistry
from juice.depends import get_session
from tests.fakes import FakeChainClient, FakePriceFeed


@pytest_asyncio.fixture(scope="function")
async def engine():
    """In-memory SQLite database, one shared connection per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a new database session for each test"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def fund_user(db_session):
    """Give a user spendable Juice directly through the balance repository"""

    async def fund(user_id: str, amount: str, now: datetime = None):
        repo = SqlAlchemyJuiceBalanceRepository(db_session)
        await repo.get_or_create(user_id)
        await repo.credit(user_id, Decimal(amount), now or datetime.utcnow())
        await db_session.commit()
        return await repo.get_by_user_id(user_id)

    return fund


@pytest.fixture
def chain_client():
    return FakeChainClient(chain_id=42161)


@pytest_asyncio.fixture
async def client(db_session, chain_client):
    """Create test client with database session override"""
    from juice.api.app import create_app
    from config import ApplicationConfig

    app = create_app(
        ApplicationConfig,
        chain_registry=ChainClientRegistry({42161: chain_client}),
        price_feed=FakePriceFeed(),
    )

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
