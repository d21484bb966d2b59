from decimal import Decimal
from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from juice.adapter.services.chain_client import build_chain_registry
from juice.adapter.services.price_feed import ChainlinkPriceFeed
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.services.price_feed import PriceFeed

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def build_settlement_registry(config) -> ChainClientRegistry:
    return build_chain_registry(
        config.RELAYER_URL,
        config.RELAYER_API_KEY,
        config.CHAIN_RPC_URLS,
        confirmation_timeout=config.CONFIRMATION_TIMEOUT_SECONDS,
        poll_interval=config.CONFIRMATION_POLL_INTERVAL_SECONDS,
    )


def build_price_feed(config) -> PriceFeed:
    return ChainlinkPriceFeed(
        rpc_url=config.PRICE_FEED_RPC_URL,
        feed_address=config.PRICE_FEED_ADDRESS,
        decimals=config.PRICE_FEED_DECIMALS,
        max_age_seconds=config.PRICE_MAX_AGE_SECONDS,
        min_rate=Decimal(str(config.PRICE_MIN_RATE)),
        max_rate=Decimal(str(config.PRICE_MAX_RATE)),
    )


def get_config(request: Request):
    return request.app.state.config


def get_chain_registry(request: Request) -> ChainClientRegistry:
    return request.app.state.chain_registry


def get_price_feed(request: Request) -> PriceFeed:
    return request.app.state.price_feed
