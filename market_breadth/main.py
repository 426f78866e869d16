import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from market_breadth.api.rate_limit import FixedWindowRateLimiter, rate_limit_middleware
from market_breadth.api.routes import router as api_router
from market_breadth.api.socket import router as socket_router
from market_breadth.config import Settings, get_settings
from market_breadth.context import AppContext
from market_breadth.errors import EmptyResult, SourceUnavailable
from market_breadth.sources.base import RecordSource
from market_breadth.sources.loader import get_record_source

log = logging.getLogger("market_breadth")


def create_app(settings: Optional[Settings] = None, source: Optional[RecordSource] = None) -> FastAPI:
    """
    App factory.

    Builds the AppContext (settings + record source) explicitly; the source
    is opened on startup and closed on shutdown.
    """
    settings = settings or get_settings()
    source = source or get_record_source(settings)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    context = AppContext(settings=settings, source=source)

    app = FastAPI(title="Market Breadth API", version="0.1.0")
    app.state.context = context

    # The last middleware added is the outermost; CORS wraps everything,
    # 500 responses included.
    @app.middleware("http")
    async def _internal_error(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            log.exception("Unhandled error path=%s", request.url.path)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal Server Error", "message": str(exc)},
            )

    if settings.rate_limit_enabled and settings.rate_limit_max_requests > 0:
        limiter = FixedWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        app.middleware("http")(
            rate_limit_middleware(limiter, trust_forwarded_for=settings.trust_forwarded_for)
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(api_router)
    app.include_router(socket_router)

    @app.exception_handler(EmptyResult)
    async def _empty_result(request: Request, exc: EmptyResult):
        return JSONResponse(status_code=404, content={"error": "No data available"})

    @app.exception_handler(SourceUnavailable)
    async def _source_unavailable(request: Request, exc: SourceUnavailable):
        log.error("Record source unavailable path=%s error=%s", request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={"error": "Record source unavailable", "message": str(exc)},
        )

    @app.on_event("startup")
    async def _startup():
        context.open()
        log.info(
            "Started app_env=%s record_source=%s origins=%s",
            settings.app_env,
            settings.record_source,
            ", ".join(settings.allowed_origins),
        )

    @app.on_event("shutdown")
    async def _shutdown():
        log.info("Shutting down")
        context.close()

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "db": "connected" if context.connected and context.source.ping() else "disconnected",
            "uptime": round(context.uptime(), 3),
            "app_env": settings.app_env,
            "record_source": settings.record_source,
        }

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "market_breadth.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
