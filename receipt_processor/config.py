from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

SERVICE_NAME = "receipt-processor"


def _env(name: str, default: Any, cast: Callable[[str], Any]):
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return cast(raw)
	except Exception as e:
		raise ValueError(
			f"env var {name!r}={raw!r} not valid for {cast.__name__}"
		) from e


@dataclass(frozen=True)
class Settings:
	service: str = SERVICE_NAME
	log_level: str = "INFO"
	json_logs: bool = False
	otlp_endpoint: str | None = None

	# client
	api_url: str = ""
	enrich_concurrency: int = 16
	request_timeout_secs: float | None = None

	# reference service
	host: str = "0.0.0.0"
	port: int = 8080


def load_settings() -> Settings:
	# read at call time so tests and the CLI can adjust the environment first
	otlp_endpoint = _env("OTLP_ENDPOINT", None, str)
	loki_url = _env("LOKI_URL", None, str)  # presence toggles json logs, no direct emission

	concurrency = _env("ENRICH_CONCURRENCY", 16, int)
	if concurrency < 0:
		raise ValueError(f"env var 'ENRICH_CONCURRENCY'={concurrency!r} must be >= 0")

	return Settings(
		log_level=_env("LOG_LEVEL", "INFO", str),
		json_logs=bool(otlp_endpoint or loki_url),
		otlp_endpoint=otlp_endpoint,
		api_url=_env("RECEIPTS_API_URL", "", str).strip().rstrip("/"),
		enrich_concurrency=concurrency,
		request_timeout_secs=_env("REQUEST_TIMEOUT_SECS", None, float),
		host=_env("SERVER_HOST", "0.0.0.0", str),
		port=_env("SERVER_PORT", 8080, int),
	)
