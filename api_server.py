from __future__ import annotations  # FastAPI server exposing the interview session engine

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agents.backends import bind_from_config
from api.routes import candidates_router, router
from config.settings import settings
from storage.migrate import migrate


logger = logging.getLogger(__name__)

CONFIG_PATH = Path(settings.LLM_CONFIG_PATH)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    migrate(settings.DB_PATH)
    try:
        bind_from_config(CONFIG_PATH)
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("LLM config %s is invalid, running on fallbacks: %s", CONFIG_PATH, exc)
    yield


app = FastAPI(title="Interview Session API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(router)
app.include_router(candidates_router)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:  # Last-resort 500 mapping
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"error": "internal", "message": "Internal server error"}},
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
