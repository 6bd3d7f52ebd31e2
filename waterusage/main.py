"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from waterusage.api.routes import health, payments, readings, tariffs
from waterusage.core.config import settings
from waterusage.core.database import Base, engine
from waterusage.core.logging import setup_logging

# Import models for Base.metadata.create_all - order matters for foreign keys
from waterusage.models import (
    apartment,  # noqa: F401
    meter_reading,  # noqa: F401
    payment,  # noqa: F401
    tariff,  # noqa: F401
    user,  # noqa: F401
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    setup_logging()
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Water metering and billing engine",
    lifespan=lifespan,
)

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(readings.router, prefix="/api")
app.include_router(payments.router, prefix="/api")
app.include_router(tariffs.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "waterusage.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
