"""Product Catalog API - FastAPI Backend"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from app.api import health, products
from app.core.config import settings
from app.core.database import engine, init_db
from app.core.logging import setup_logging
from app.core.rate_limit import limiter
from app.services.image_storage import ImageRejected

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.LOG_LEVEL)
    await init_db()
    logger.info("Product Catalog API ready (environment=%s)", settings.ENVIRONMENT)

    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="Product Catalog API",
    description="CRUD for storefront products with optional image upload",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS for the storefront admin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=["*"],
)


@app.exception_handler(ImageRejected)
async def image_rejected_handler(request: Request, exc: ImageRejected):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(products.router, prefix="/product", tags=["Produto"])


def run():
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
