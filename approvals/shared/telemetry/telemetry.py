"""OpenTelemetry wiring for the approval engine.

Spans come from three sources: incoming HTTP requests (FastAPI), SQL
statements issued by the repositories (SQLAlchemy), and event publishes
(Redis). The exporter is chosen by ``TELEMETRY_EXPORTER``: ``console`` while
developing, ``otlp`` against a collector, ``none`` to keep spans in-process.
"""

import logging
import threading

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from approvals.core.config import Settings

logger = logging.getLogger(__name__)

# Liveness and readiness probes, matched as a prefix.
UNTRACED_URLS = "/api/v1/health"


class ApprovalTelemetry:
    """Tracer provider plus the instrumentations attached to it."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.tracer_provider: TracerProvider | None = None

    @property
    def active(self) -> bool:
        return self.tracer_provider is not None

    def _build_exporter(self) -> SpanExporter | None:
        kind = self.settings.telemetry_exporter
        endpoint = self.settings.telemetry_otlp_endpoint
        if kind == "none":
            return None
        if kind == "otlp":
            if not endpoint:
                logger.warning(
                    "TELEMETRY_EXPORTER=otlp without TELEMETRY_OTLP_ENDPOINT; "
                    "falling back to console"
                )
                return ConsoleSpanExporter()
            return OTLPSpanExporter(
                endpoint=endpoint, insecure=endpoint.startswith("http://")
            )
        if kind != "console":
            logger.warning("Unknown telemetry exporter %r; using console", kind)
        return ConsoleSpanExporter()

    def start(self) -> None:
        """Create the provider and register it globally.

        A failure here is logged and leaves telemetry inactive; the service
        keeps serving approvals without traces.
        """
        resource = Resource(
            attributes={
                SERVICE_NAME: self.settings.app_name,
                SERVICE_VERSION: self.settings.app_version,
                "deployment.environment": self.settings.telemetry_environment,
            }
        )
        try:
            provider = TracerProvider(
                resource=resource,
                sampler=ParentBased(
                    TraceIdRatioBased(self.settings.telemetry_sample_rate)
                ),
            )
            exporter = self._build_exporter()
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
        except Exception:
            logger.exception("Telemetry could not be started")
            return
        trace.set_tracer_provider(provider)
        self.tracer_provider = provider
        logger.info(
            "Tracing %s %s (exporter=%s, sample_rate=%s)",
            self.settings.app_name,
            self.settings.app_version,
            self.settings.telemetry_exporter,
            self.settings.telemetry_sample_rate,
        )

    def instrument(
        self, app: FastAPI, engine: AsyncEngine, *, redis: bool = False
    ) -> None:
        """Attach HTTP, SQL and (optionally) Redis instrumentation."""
        if not self.active:
            return
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=self.tracer_provider, excluded_urls=UNTRACED_URLS
        )
        SQLAlchemyInstrumentor().instrument(
            engine=engine.sync_engine, tracer_provider=self.tracer_provider
        )
        if redis:
            RedisInstrumentor().instrument(tracer_provider=self.tracer_provider)
        logger.info("Instrumented FastAPI, SQLAlchemy%s", " and Redis" if redis else "")

    def shutdown(self) -> None:
        """Flush pending spans."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception:
            logger.exception("Error flushing spans on shutdown")
        self.tracer_provider = None


_telemetry: ApprovalTelemetry | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> ApprovalTelemetry | None:
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: ApprovalTelemetry | None) -> None:
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry
