# cartledger/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from cartledger.api.routers import carts, checkout, orders, products, health
from cartledger.data.database import init_db
from cartledger.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database tables")
    init_db()
    yield


def create_app(run_init_db: bool = True) -> FastAPI:
    app = FastAPI(
        title="Cart Ledger",
        version="1.0.0",
        lifespan=lifespan if run_init_db else None,
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
