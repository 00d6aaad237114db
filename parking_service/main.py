import logging

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from parking_shared.database import get_engine

from . import config
from .bookings import BookingService
from .catalog import CatalogService
from .errors import ParkingError
from .locks import LocalLocks, RedisLocks
from .memory_store import MemoryStore
from .middleware import RequestLoggingMiddleware
from .rabbitmq import RabbitPublisher
from .routes import router
from .seed import seed_demo_data
from .sql_store import SqlStore
from .transport import TransportService

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def build_store():
    if config.STORE_BACKEND == "memory":
        return MemoryStore()
    if config.STORE_BACKEND == "sql":
        if not config.DATABASE_URL:
            raise RuntimeError("PARKING_DB environment variable is not set")
        return SqlStore(get_engine(config.DATABASE_URL, echo=config.DB_ECHO))
    raise RuntimeError(f"Unknown STORE_BACKEND: {config.STORE_BACKEND}")


def build_locks():
    if config.REDIS_URL:
        client = redis.from_url(config.REDIS_URL, decode_responses=True)
        return RedisLocks(client, timeout=config.LOCK_TIMEOUT_SECONDS, wait=config.LOCK_WAIT_SECONDS)
    return LocalLocks()


def create_app(store=None, locks=None, publisher=None) -> FastAPI:
    app = FastAPI(title="Parking Service")
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(router)

    def wire(store_, locks_, publisher_):
        app.state.store = store_
        app.state.publisher = publisher_
        app.state.catalog = CatalogService(store_)
        app.state.bookings = BookingService(store_, locks_, publisher_)
        app.state.transport = TransportService(store_, publisher_)

    if store is not None:
        wire(store, locks or LocalLocks(), publisher)

    @app.exception_handler(ParkingError)
    async def parking_error_handler(request: Request, exc: ParkingError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "service": config.SERVICE_NAME,
            "store": type(app.state.store).__name__,
            "events_enabled": bool(app.state.publisher and app.state.publisher.enabled),
        }

    @app.on_event("startup")
    async def startup():
        if store is None:
            pub = RabbitPublisher()
            wire(build_store(), build_locks(), pub)
            # Never crash service if RabbitMQ is temporarily unavailable
            try:
                await pub.connect()
            except Exception as e:
                logger.warning("RabbitMQ connect failed at startup; continuing without events: %s", e)

        if isinstance(app.state.store, SqlStore) and config.DB_CREATE_ALL:
            await app.state.store.create_all()

        if config.SEED_DEMO_DATA:
            await seed_demo_data(app.state.catalog, app.state.transport)

    @app.on_event("shutdown")
    async def shutdown():
        if store is not None:
            return
        try:
            await app.state.publisher.close()
        except Exception as e:
            logger.warning("RabbitMQ close failed: %s", e)
        await app.state.store.close()

    return app


app = create_app()
