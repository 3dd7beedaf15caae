from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from private_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from private_chat.api.v1.routers import auth, chat, health, room, ws
from private_chat.application.exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    MessageLimitError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from private_chat.config import settings
from private_chat.infrastructure.firestore.app import init_firebase
from private_chat.infrastructure.firestore.store import FirestoreDocumentStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    if getattr(app.state, "store", None) is None:
        firebase_app = init_firebase(settings.FIREBASE_CREDENTIALS, settings.FIREBASE_PROJECT_ID)
        app.state.store = FirestoreDocumentStore(firebase_app)
        logger.info("Firestore store ready (app_id=%s)", settings.APP_ID)

    yield

    await ws.get_registry().close_all()
    logger.info("Live sessions closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Private Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(chat.router)
    app.include_router(room.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def _unauthorized(_req: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(MessageLimitError)
    async def _limit(_req: Request, exc: MessageLimitError) -> JSONResponse:
        return JSONResponse(status_code=429, content={"detail": exc.detail})

    @app.exception_handler(StoreError)
    async def _store(_req: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store request failed: %s", exc.detail)
        return JSONResponse(status_code=503, content={"detail": exc.detail})
