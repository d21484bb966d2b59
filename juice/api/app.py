import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from juice.api.error import ClientError, client_error_handler, validation_error_handler
from juice.api.routes import admin, juice
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.services.price_feed import PriceFeed
from juice.depends import build_price_feed, build_settlement_registry

logger = logging.getLogger(__name__)


def create_app(
    config,
    chain_registry: Optional[ChainClientRegistry] = None,
    price_feed: Optional[PriceFeed] = None,
) -> FastAPI:
    """
    Build the Juice API

    Settlement collaborators are created once here and shared by every
    request through app.state.
    """
    logging.basicConfig(level=config.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.chain_registry.aclose()
        await app.state.price_feed.aclose()

    app = FastAPI(title="Juice Ledger Service", version="1.0.0", lifespan=lifespan)

    app.state.config = config
    app.state.chain_registry = (
        chain_registry if chain_registry is not None else build_settlement_registry(config)
    )
    app.state.price_feed = price_feed if price_feed is not None else build_price_feed(config)

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(juice.router, prefix=config.API_PREFIX)
    app.include_router(admin.router, prefix=config.API_PREFIX)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    logger.info(
        f"Juice API ready, settlement chains: {app.state.chain_registry.supported_chain_ids()}"
    )
    return app
