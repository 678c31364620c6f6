# contest_portal/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from contest_portal.api.errors import register_exception_handlers
from contest_portal.api.rate_limit import close_rate_limiter, init_rate_limiter
from contest_portal.api.routers import admin, cart, checkout, flags, health, registrations
from contest_portal.data.database import init_db
from contest_portal.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database tables ready")
    await init_rate_limiter()
    yield
    await close_rate_limiter()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Contest Portal",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(cart.router)
    app.include_router(checkout.router)
    app.include_router(admin.router)
    app.include_router(registrations.router)
    app.include_router(flags.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
