# app/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import redis
import uvicorn

from app.data.database import Base, engine
from app.api.routers import (
    ai,
    carts,
    categories,
    favorites,
    health,
    notifications,
    orders,
    products,
    users,
)
from app.utils.logging import get_logger

# rejestracja wszystkich modeli w Base.metadata przed create_all
from app.data import models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Initializing database, tables: {sorted(Base.metadata.tables)}")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")


async def infrastructure_error_handler(request: Request, exc: Exception):
    """Awaria bazy albo Redisa -> 500 z tym samym kształtem detail co błędy domenowe."""
    logger.exception(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}"
    )
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "INTERNAL_ERROR", "message": "Błąd wewnętrzny serwera"}},
    )


def create_app() -> FastAPI:
    init_db()

    app = FastAPI(
        title="Marketplace Service",
        version="1.0.0",
    )
    app.add_exception_handler(SQLAlchemyError, infrastructure_error_handler)
    app.add_exception_handler(redis.RedisError, infrastructure_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(favorites.router)
    app.include_router(notifications.router)
    app.include_router(ai.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
