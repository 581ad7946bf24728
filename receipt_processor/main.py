from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .config import SERVICE_NAME, Settings, load_settings
from .logging import configure_logging
from .service import ReceiptService
from .transport.rest import build_router
from .version import get_version_info

log = logging.getLogger(__name__)


def setup_tracing(settings: Settings) -> TracerProvider | None:
	if not settings.otlp_endpoint:
		log.info("tracing disabled (no OTLP_ENDPOINT)")
		return None

	resource = Resource.create({"service.name": SERVICE_NAME})
	provider = TracerProvider(resource=resource)
	exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True)
	provider.add_span_processor(BatchSpanProcessor(exporter))
	trace.set_tracer_provider(provider)
	log.info("tracing enabled", extra={"otlp_endpoint": settings.otlp_endpoint})
	return provider


def create_app(settings: Settings | None = None, svc: ReceiptService | None = None) -> FastAPI:
	settings = settings or load_settings()
	configure_logging(
		service=SERVICE_NAME, json_mode=settings.json_logs, level=settings.log_level
	)
	svc = svc or ReceiptService(settings)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		log.info("starting service", extra=get_version_info())
		yield
		log.info("service stopped")

	app = FastAPI(title=SERVICE_NAME, version="0.1.0", lifespan=lifespan)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_methods=["GET", "POST", "OPTIONS"],
		allow_headers=["Content-Type"],
	)
	app.include_router(build_router(svc))

	provider = setup_tracing(settings)
	if provider is not None:
		FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)

	return app
