"""FastAPI app entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL
from .db import close_conn, get_conn
from .errors import DevtimeError, ValidationError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_conn()
    yield
    close_conn()


app = FastAPI(title="Devtime", lifespan=lifespan)

from .ingest import router as ingest_router
from .api import router as api_router

app.include_router(ingest_router)
app.include_router(api_router)


@app.exception_handler(DevtimeError)
async def devtime_error(request: Request, exc: DevtimeError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"success": False, "detail": exc.message}
    if isinstance(exc, ValidationError):
        body["index"] = exc.index
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/health")
async def health():
    return {"status": "ok"}
