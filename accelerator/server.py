import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence

import httpx
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_fastapi_instrumentator import Instrumentator

from accelerator import __version__
from accelerator.height import HeightCache, HeightPoller
from accelerator.metrics import APP_INFO
from accelerator.models import ServerOptions
from accelerator.proxy.route import router as proxy_router
from accelerator.queries import UpstreamQueryError, is_server_catching_up
from accelerator.routes import router
from accelerator.vars import OTLP_ENDPOINT, OTLP_HEADERS, SERVICE_NAME

logger = logging.getLogger("uvicorn.error")


class FilteringSpanExporter(SpanExporter):
    """
    Wrapper exporter that filters out noisy ASGI body spans.
    Proxied responses otherwise add one tiny span per body chunk.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type") == "http.response.body"
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


def configure_tracing() -> None:
    trace.set_tracer_provider(
        TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
    )
    if OTLP_ENDPOINT:
        otlp_exporter = OTLPSpanExporter(
            endpoint=OTLP_ENDPOINT,
            headers=((OTLP_HEADERS).split(",") if OTLP_HEADERS else None),
        )
        trace.get_tracer_provider().add_span_processor(
            BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
        )


configure_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    logger.info(f"[Server] Starting server v{__version__}")

    try:
        await is_server_catching_up(state.http_client, state.options.server)
    except UpstreamQueryError as e:
        logger.error(f"[Server] Startup check failed to connect: {e}")
        await state.http_client.aclose()
        raise

    state.height_poller.start(state.options.height_check_interval_ms)
    logger.info(f"[Server] Proxying to {state.options.server}")
    try:
        yield
    finally:
        await state.height_poller.stop()
        await state.http_client.aclose()


def create_app(
    options: ServerOptions, transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Build the proxy application.

    The HTTP client, height cache and poller are created once here and shared
    through ``app.state`` by the health route, the proxy route and the poller.
    """
    app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

    client = httpx.AsyncClient(
        timeout=httpx.Timeout(options.proxy_timeout),
        follow_redirects=False,
        transport=transport,
    )
    height_cache = HeightCache()

    app.state.options = options
    app.state.http_client = client
    app.state.height_cache = height_cache
    app.state.height_poller = HeightPoller(client, options.server, height_cache)

    app.include_router(router)
    Instrumentator().instrument(app).expose(app)
    FastAPIInstrumentor.instrument_app(app)

    APP_INFO.info({"app_name": SERVICE_NAME, "version": __version__})

    # The proxy catch-all must come last so it does not shadow other routes
    app.include_router(proxy_router)
    return app
