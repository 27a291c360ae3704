from contextlib import asynccontextmanager
import logging
import os
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from api_v1 import router as router_v1
from api_v1.common.errors import JsonApiError, json_api_error_handler, validation_error_handler
from api_v1.docs.views import create_docs_router
from core.config import settings
from core.logging_config import configure_logging, trace_id_ctx

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Application starting up...")
    logger.info(
        "CORS configuration | origins=%s | allow_credentials=%s",
        settings.cors_allowed_origins,
        settings.cors_allow_credentials,
    )
    logger.info("Metrics windows | allowed=%s", settings.metrics.allowed_windows)

    from core.container import get_container
    container = get_container()

    yield

    logger.info("Application shutting down...")
    await container.instagram_service().close()
    await container.database_helper().dispose()
    logger.info("Instagram session closed and database engine disposed")


app = FastAPI(
    title="Athlete metrics API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router=router_v1, prefix=settings.api_v1_prefix)
app.include_router(router=create_docs_router(app))
app.add_exception_handler(JsonApiError, json_api_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


@app.middleware("http")
async def bind_trace_id(request: Request, call_next):
    # Assign/propagate a trace id for each request
    trace_id = request.headers.get("X-Trace-Id") or str(uuid.uuid4())
    token = trace_id_ctx.set(trace_id)
    try:
        response = await call_next(request)
    finally:
        trace_id_ctx.reset(token)
    response.headers["X-Trace-Id"] = trace_id
    return response


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")
    uvicorn.run("main:app", host=host, port=port, reload=True)
