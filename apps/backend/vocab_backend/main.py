from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import anyio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from .config import settings
from .dependencies import vocabulary_flow
from .errors import InvalidArgumentError, ItemNotFoundError, PersistenceFailureError
from .logging import configure_logging, logger
from .middleware import AccessLogMiddleware, RequestIDMiddleware
from .routers import health, review, unknown_words, vocabulary


async def _seed_on_startup() -> None:
    """Seed the configured word file into an empty store."""
    if not settings.seed_words_path:
        return
    path = Path(settings.seed_words_path)
    try:
        count = await anyio.to_thread.run_sync(vocabulary_flow.seed_from_file, path)
        logger.info("startup_seed", path=str(path), count=count)
    except (OSError, ValueError, PersistenceFailureError) as exc:
        if settings.strict_mode:
            logger.error("startup_seed_failed", path=str(path), error=repr(exc))
            raise
        # 非 strict では起動を継続。語彙は API から登録できる
        logger.warning("startup_seed_failed", path=str(path), error=repr(exc))


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    await _seed_on_startup()
    yield


async def _invalid_argument_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _persistence_failure_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("persistence_failure", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    configure_logging()
    app = FastAPI(title="Vocabulary SRS API", version="0.1.0", lifespan=_lifespan)

    configured_origins = list(settings.allowed_cors_origins)
    allow_credentials = bool(configured_origins)
    if not configured_origins:
        configured_origins = ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=configured_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Starlette では後から追加したミドルウェアが外側で実行される。
    # RequestID → AccessLog の順に通過する。
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(InvalidArgumentError, _invalid_argument_handler)
    app.add_exception_handler(ItemNotFoundError, _not_found_handler)
    app.add_exception_handler(PersistenceFailureError, _persistence_failure_handler)

    app.include_router(health.router)
    app.include_router(vocabulary.router, prefix="/api/vocabulary")
    app.include_router(review.router, prefix="/api/review")
    app.include_router(unknown_words.router, prefix="/api/unknown-words")

    return app


app = create_app()
