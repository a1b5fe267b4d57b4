"""
FastAPI application module.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import DecodeError
from ..fees import get_fee_estimator
from ..logging_config import setup_logging
from .routes import router

logger = setup_logging('soltx.api')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI app.
    Closes RPC sessions owned by the shared fee estimator on shutdown.
    """
    logger.info("Starting up application...")
    yield
    await get_fee_estimator().close()
    logger.info("Application shutdown complete")


async def decode_error_handler(request: Request, exc: DecodeError) -> JSONResponse:
    logger.warning(f"Rejected transaction on {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content=exc.to_dict())


def create_app() -> FastAPI:
    app = FastAPI(
        title="soltx API",
        description="Solana transaction decoding and fee estimation.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DecodeError, decode_error_handler)
    app.include_router(router)

    @app.get("/")
    async def root():
        return {"name": "soltx", "version": __version__, "docs": "/docs"}

    return app


app = create_app()
