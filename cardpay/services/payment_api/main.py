"""HTTP surface for card payments.

`create_app()` with no arguments builds everything from the environment in
the lifespan; tests pass a ready `PaymentContext` instead.
"""

import socket
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cardpay.common.config import get_settings
from cardpay.common.errors import AppError, DatabaseError, InternalServerError
from cardpay.common.logging import configure_logging, logger, trace_id_ctx
from cardpay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
    payment_errors_total,
    payment_latency_seconds,
    payment_requests_total,
)
from cardpay.common.startup import log_startup_config
from cardpay.common.tracing import instrument_app, setup_tracing
from cardpay.services.payment_api.context import PaymentContext, build_context
from cardpay.services.payment_api.schemas import ErrorResponse, PaymentRequest, PaymentResponse
from cardpay.services.payment_api.service import process_payment


def get_context(request: Request) -> PaymentContext:
    return request.app.state.context


def create_app(context: PaymentContext | None = None) -> FastAPI:
    """Build the app; with no `context` one is created from settings at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load settings and own the context for the app lifetime when none was injected."""

        if context is not None:
            yield
            return
        settings = get_settings()
        configure_logging(settings.service_name, settings.log_level)
        setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
        log_startup_config(settings)
        owned = build_context(settings)
        app.state.context = owned
        yield
        await owned.aclose()

    app = FastAPI(title="CardPay Payment API", lifespan=lifespan)
    if context is not None:
        app.state.context = context
    instrument_app(app)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Record request count and latency for every HTTP call."""

        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        service = _service_name(request)
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(service=service, route=route, method=method).observe(elapsed)
            http_requests_total.labels(
                service=service,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, DatabaseError):
            logger.error("database error: %s", exc.message, exc_info=exc.original)
        elif exc.status_code >= 500:
            logger.error("%s: %s", exc.kind.value, exc.message)
        payment_errors_total.labels(service=_service_name(request), kind=exc.kind.value).inc()
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.public_message).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("rejected malformed payment body errors=%s", exc.errors())
        return JSONResponse(status_code=400, content=ErrorResponse(error="Invalid request body.").model_dump())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Anything outside the taxonomy is reported as an internal error."""

        logger.error("unhandled error: %s", exc, exc_info=exc)
        err = InternalServerError("Internal server error.")
        payment_errors_total.labels(service=_service_name(request), kind=err.kind.value).inc()
        return JSONResponse(
            status_code=err.status_code,
            content=ErrorResponse(error=err.public_message).model_dump(),
        )

    @app.post(
        "/api/payment",
        response_model=PaymentResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    )
    async def create_payment(
        req: PaymentRequest,
        ctx: PaymentContext = Depends(get_context),
        x_trace_id: str | None = Header(default=None),
    ):
        """Authorize and record one card payment.

        Declines come back as 200 with `success=false`; only infrastructure
        and validation failures are HTTP errors.
        """

        trace_id_ctx.set(x_trace_id or str(uuid4()))
        payment_requests_total.labels(service=ctx.service_name).inc()
        with payment_latency_seconds.labels(service=ctx.service_name).time():
            return await process_payment(ctx, req)

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    return app


def _service_name(request: Request) -> str:
    ctx = getattr(request.app.state, "context", None)
    return ctx.service_name if ctx is not None else "cardpay-api"


app = create_app()


def run() -> None:
    """Bind the configured address and serve the app with uvicorn."""

    settings = get_settings()
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((settings.host, settings.port))
    except OSError as exc:
        sock.close()
        raise InternalServerError(f"Failed to start TCP listener: {exc}") from exc
    logger.info("payment API listening on http://%s:%s", settings.host, settings.port)
    uvicorn.Server(uvicorn.Config(app)).run(sockets=[sock])


if __name__ == "__main__":
    run()
