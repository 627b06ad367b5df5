import os
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.config import RelaySettings, get_settings
from core.errors import RelayError, UnexpectedError
from core.schemas import HealthResponse
from core.translate_router import current_settings, router as translate_router

logger = logging.getLogger("Relay.Server")

STATIC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../static'))

CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "Accept"]


def _log_unhandled_loop_error(loop, context):
    """Background task failures are logged; the server keeps running."""
    exc = context.get("exception")
    logger.error(f"Unhandled async error: {context.get('message', '')}", exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    asyncio.get_running_loop().set_exception_handler(_log_unhandled_loop_error)
    yield


def install_cors(app: FastAPI, settings: RelaySettings):
    """Wildcard or allow-list policy, picked by CORS_ALLOWED_ORIGINS."""
    if settings.cors_wildcard:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORS: wildcard")
        return

    allowed = set(settings.cors_allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(allowed),
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    # Added after CORSMiddleware, so it runs first
    @app.middleware("http")
    async def reject_unknown_origins(request: Request, call_next):
        origin = request.headers.get("origin")
        if origin and origin not in allowed:
            logger.warning(f"Blocked by CORS: {origin}")
            return JSONResponse(status_code=403, content={"error": "Not allowed by CORS"})
        return await call_next(request)

    logger.info(f"CORS: allow-list {sorted(allowed)}")


def create_app(settings: Optional[RelaySettings] = None, static_dir: str = STATIC_DIR) -> FastAPI:
    app = FastAPI(title="Translation Relay", lifespan=lifespan)
    # None means every request re-reads config and env
    app.state.settings = settings

    @app.middleware("http")
    async def answer_bare_options(request: Request, call_next):
        # Preflights carrying Origin are answered by CORSMiddleware before this
        if request.method == "OPTIONS":
            return Response(status_code=204)
        return await call_next(request)

    install_cors(app, settings or get_settings())

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        request_id = getattr(request.state, "request_id", "-")
        logger.error(f"[{request_id}] {type(exc).__name__} ({exc.status_code}): {exc.message}")
        expose = not exc.internal or current_settings(request).is_development
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(expose_details=expose))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"[{request_id or '-'}] Unhandled error: {exc}", exc_info=exc)
        wrapped = UnexpectedError("An unexpected server error occurred", request_id=request_id, details=str(exc))
        return JSONResponse(status_code=500, content=wrapped.to_body(expose_details=current_settings(request).is_development))

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse()

    app.include_router(translate_router)

    # Mount last: "/" would shadow every route declared after it
    if os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="ui")
    else:
        logger.warning(f"Static UI directory not found at {static_dir}")

    return app


app = create_app()


def run_api_server(host: str, port: int):
    logger.info(f"Translation relay listening on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
