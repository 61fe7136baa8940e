import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

import config
from db import Database
from exceptions.base import StorefrontException
from middleware.rate_limit import RateLimiter
from middleware.security_headers import SecurityHeadersMiddleware
from services.checkout import CheckoutService
from services.order_ledger import OrderLedgerService
from services.payment_gateway import StripeGateway
from services.user import UserService
from services.webhook import WebhookReceiver
from utils.error_handler import storefront_exception_handler
from web.catalog_router import catalog_router
from web.checkout_router import checkout_router
from web.webhook_router import webhook_router

logger = logging.getLogger(__name__)


def create_app(database: Database | None = None,
               gateway: StripeGateway | None = None,
               redis: Redis | None = None) -> FastAPI:
    """
    Build the storefront API.

    Collaborators passed in are owned by the caller and left open at shutdown,
    the ones built here from config are closed by the lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler for startup and shutdown."""
        owns_database = database is None
        owns_redis = redis is None and bool(config.REDIS_URL)
        app_database = database or Database(config.DB_URL)
        app_redis = redis or (Redis.from_url(config.REDIS_URL, decode_responses=True) if config.REDIS_URL else None)

        # Startup
        await app_database.create_all()
        order_ledger = OrderLedgerService(app_database)
        payment_gateway = gateway or StripeGateway()
        app.state.database = app_database
        app.state.order_ledger = order_ledger
        app.state.checkout_service = CheckoutService(app_database, order_ledger, payment_gateway)
        app.state.webhook_receiver = WebhookReceiver(order_ledger, payment_gateway)
        app.state.user_service = UserService(app_database)
        app.state.rate_limiter = RateLimiter(app_redis) if app_redis is not None else None
        if app_redis is None:
            logger.info("[Startup] Checkout rate limiting disabled (no REDIS_URL)")
        logger.info(f"[Startup] Storefront ready ({config.RUNTIME_ENVIRONMENT.value}, {config.CURRENCY.value})")

        yield

        # Shutdown
        logger.warning('Shutting down..')
        if owns_redis:
            await app_redis.aclose()
        if owns_database:
            await app_database.dispose()
        logger.warning('Bye!')

    app = FastAPI(title="Storefront Checkout", lifespan=lifespan)

    if config.SECURITY_HEADERS_ENABLED:
        app.add_middleware(SecurityHeadersMiddleware)
        logger.info("[Startup] Security headers middleware enabled")

    if config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ALLOWED_ORIGINS,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-Identity-Token"],
        )
        logger.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
    else:
        logger.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

    app.include_router(catalog_router)
    app.include_router(checkout_router)
    app.include_router(webhook_router)
    app.add_exception_handler(StorefrontException, storefront_exception_handler)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for Docker healthcheck."""
        return {"status": "healthy"}

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "InternalError", "message": "An unexpected error occurred", "retryable": False},
        )

    return app


def main() -> None:
    uvicorn.run(create_app(), host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)
