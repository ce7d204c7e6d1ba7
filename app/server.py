from typing import Optional

from app.vars import SERVICE_NAME, OTLP_ENDPOINT, OTLP_HEADERS
from fastapi import FastAPI
from .routes import router
from .cors_proxy import Forwarder, ProxyConfig
from opentelemetry import trace

from prometheus_fastapi_instrumentator import Instrumentator
from prometheus_client import Info

try:
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    _OTEL_AVAILABLE = True
except ImportError:  # pragma: no cover - tracing extra not installed, API stays no-op
    _OTEL_AVAILABLE = False


def configure_tracing(app: FastAPI) -> None:
    if not _OTEL_AVAILABLE:
        return
    trace.set_tracer_provider(
        TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
    )
    tracer_provider = trace.get_tracer_provider()
    if OTLP_ENDPOINT:
        otlp_exporter = OTLPSpanExporter(
            endpoint=OTLP_ENDPOINT,
            headers=((OTLP_HEADERS).split(",") if OTLP_HEADERS else None),
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    FastAPIInstrumentor.instrument_app(app)


def create_app(
    config: Optional[ProxyConfig] = None, forwarder: Optional[Forwarder] = None
) -> FastAPI:
    """
    Build the proxy application.

    The proxy configuration is resolved once here and shared read-only by
    every request through ``app.state.forwarder``.
    """
    if forwarder is None:
        forwarder = Forwarder(config or ProxyConfig.from_env())

    app = FastAPI(title=SERVICE_NAME)
    app.state.forwarder = forwarder
    Instrumentator().instrument(app).expose(app)
    app.include_router(router)
    return app


app = create_app()
configure_tracing(app)

# Add app_name to the metrics
app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})
