"""HTTP entry point: FastAPI app exposing ``GET /proxy/{target}``.

Run with ``python -m roblox_proxy.server`` or the ``roblox-proxy`` script.
"""

from __future__ import annotations

import secrets
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from roblox_proxy.config import Settings
from roblox_proxy.errors import ErrorCode, ProxyError
from roblox_proxy.fetcher import build_http_client
from roblox_proxy.keys import derive_cache_key
from roblox_proxy.logging_config import configure_logging
from roblox_proxy.models.proxy import ProxyRequest
from roblox_proxy.state import AppState, build_state

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

log = structlog.get_logger()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with build_http_client(settings.proxy) as client:
            state = build_state(settings, client)
            app.state.proxy_state = state
            log.info(
                "server_started",
                cache_dir=str(state.disk.directory),
                ttl_seconds=settings.cache.ttl_seconds,
            )
            try:
                yield
            finally:
                await state.proxy.drain()
                log.info("server_stopped")

    app = FastAPI(title="roblox-proxy", lifespan=lifespan)

    @app.middleware("http")
    async def require_access_key(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        expected = settings.proxy.access_key
        if expected is None:
            return await call_next(request)
        presented = (
            request.query_params.get(settings.proxy.auth_param)
            or request.headers.get("x-access-key")
            or ""
        )
        if not secrets.compare_digest(
            presented.encode("utf-8"), expected.get_secret_value().encode("utf-8")
        ):
            error = ProxyError(ErrorCode.INVALID_ACCESS_KEY, "invalid access key")
            return JSONResponse({"error": error.message}, status_code=error.status_code)
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        log.info(
            "http_request",
            method=request.method,
            path=derive_cache_key(
                request.url.path, request.url.query, settings.proxy.auth_param
            ),
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response

    # Added last so it wraps the access-key check: 401s and preflights get CORS headers.
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"])

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.get("/")
    async def health() -> PlainTextResponse:
        return PlainTextResponse("roblox-proxy up")

    @app.get("/proxy/{target:path}")
    async def proxy(target: str, request: Request) -> Response:
        state: AppState = request.app.state.proxy_state
        proxy_request = ProxyRequest(
            path=request.url.path,
            query=request.url.query,
            target=target,
            user_agent=request.headers.get("user-agent"),
            accept=request.headers.get("accept"),
        )
        result = await state.proxy.handle(proxy_request)
        return Response(
            content=result.body,
            status_code=result.status_code,
            headers=result.headers,
        )

    return app


def main() -> None:
    settings = Settings()
    configure_logging(settings.logging)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        access_log=False,
    )


if __name__ == "__main__":
    main()
