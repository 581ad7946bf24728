from __future__ import annotations

from ..config import Settings
from .api import ReceiptsApi
from .controller import INVALID_JSON, INVALID_RESPONSE, ReceiptsController, parse_payload
from .enrich import enrich_receipts
from .errors import ApiError
from .state import ViewState

__all__ = [
	"ApiError",
	"INVALID_JSON",
	"INVALID_RESPONSE",
	"ReceiptsApi",
	"ReceiptsController",
	"ViewState",
	"build_controller",
	"enrich_receipts",
	"parse_payload",
]


def build_controller(settings: Settings, origin: str = "") -> ReceiptsController:
	"""Wire a controller from settings.

	``origin`` is the scheme and host relative paths resolve against when
	``settings.api_url`` is empty.
	"""
	api = ReceiptsApi(
		settings.api_url, timeout=settings.request_timeout_secs, origin=origin
	)
	return ReceiptsController(api, enrich_concurrency=settings.enrich_concurrency)
