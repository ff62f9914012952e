"""
FastAPI application factory: lifespan, request logging, error handlers, routers.
"""

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from storefront import __version__
from storefront._container import Storefront
from storefront.log import log_api_request
from storefront.wire._deps import get_client_id
from storefront.wire._errors import install_error_handlers
from storefront.wire._routes import admin, public


def create_app(storefront: Storefront, *, close_on_shutdown: bool = False) -> FastAPI:
    """
    Build the FastAPI application around a ready container.

    The rate-limit sweeper runs for the lifetime of the app. With
    `close_on_shutdown` the container is closed when the app stops.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        storefront.limiter.start_sweeper()
        try:
            yield
        finally:
            if close_on_shutdown:
                await storefront.aclose()
            else:
                await storefront.limiter.stop()

    app = FastAPI(title=storefront.settings.store_name, version=__version__, lifespan=lifespan)
    app.state.storefront = storefront

    install_error_handlers(app)
    app.include_router(public)
    app.include_router(admin)

    @app.middleware("http")
    async def log_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            log_api_request(
                request.method,
                request.url.path,
                get_client_id(request),
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
        return response

    return app


__all__ = ("create_app",)
