from __future__ import annotations

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from tempmail.core.config import get_settings
from tempmail.core.metrics import observe_http_request
from tempmail.core.middleware import (
    build_request_id,
    log_request_completion,
    now_ts,
    request_id_ctx,
)
from tempmail.routers.health import router as health_router
from tempmail.routers.inbound import router as inbound_router


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="tempmail", version=settings.VERSION)

    @app.middleware("http")
    async def add_request_context(request, call_next):  # type: ignore[no-untyped-def]
        request_id = build_request_id(request, header_name=settings.REQUEST_ID_HEADER)
        token = request_id_ctx.set(request_id)
        start_ts = now_ts()
        method = request.method
        path = request.url.path
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[settings.REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = int((now_ts() - start_ts) * 1000)
            log_request_completion(
                request_id=request_id,
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
            )
            if settings.ENABLE_PROMETHEUS_METRICS:
                route = request.scope.get("route")
                observe_http_request(
                    method=method,
                    path=getattr(route, "path", path),
                    status_code=status_code,
                    duration_ms=duration_ms,
                )
            request_id_ctx.reset(token)

    if settings.ENABLE_PROMETHEUS_METRICS:

        @app.get(settings.PROMETHEUS_METRICS_PATH, include_in_schema=False)
        def metrics() -> Response:
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(health_router)
    app.include_router(inbound_router)
    return app


app = create_app()
