# /backend/therabridge/main.py

from __future__ import annotations
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from therabridge.config import ASYNC_DB_URL, CORS_ORIGINS, LOG_LEVEL
from therabridge.db import build_engine, build_sessionmaker, create_schema, get_db
from therabridge.api.routers import auth, onboarding, therapist, client, subscription, audit, demo
from therabridge.services.llm_client import LLMClient, LLMServiceError

logger.remove()
logger.add(
    sys.stderr,
    level=LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
)


def create_app(
    database_url: Optional[str] = None,
    llm: Optional[LLMClient] = None,
    create_tables: bool = False,
) -> FastAPI:
    """
    Build the API with its own engine, sessionmaker and LLM client on `app.state`.

    Tests pass an in-memory SQLite url, a fake-backed LLMClient and
    create_tables=True; production relies on alembic for the schema.
    """
    engine = build_engine(database_url or ASYNC_DB_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            await create_schema(engine)
        logger.info("TheraBridge API started")
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("TheraBridge API stopped")

    app = FastAPI(title="TheraBridge API", lifespan=lifespan)
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.llm = llm or LLMClient()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LLMServiceError)
    async def llm_unavailable(request: Request, exc: LLMServiceError):
        logger.error(f"LLM call failed on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=502,
            content={"detail": "AI service is unavailable. Please try again later."},
        )

    app.include_router(auth.router)
    app.include_router(onboarding.router)
    app.include_router(therapist.router)
    app.include_router(client.router)
    app.include_router(subscription.router)
    app.include_router(audit.router)
    app.include_router(demo.router)

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/db-health")
    async def db_health(db: AsyncSession = Depends(get_db)):
        result = await db.execute(text("SELECT 1"))
        return {"db": "ok", "result": result.scalar_one()}

    return app


app = create_app()
