from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from opentelemetry import trace

from ..schemas import Receipt
from .api import ReceiptsApi
from .enrich import enrich_receipts
from .errors import ApiError
from .state import ViewState

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

INVALID_JSON = "Invalid JSON format"
INVALID_RESPONSE = "Invalid response from server"


def _reject_constant(name: str) -> Any:
	raise ValueError(f"{name} is not valid JSON")


def parse_payload(raw_text: str) -> dict[str, Any] | None:
	"""Return the JSON object in ``raw_text``, or None if it is not one.

	No field checks: anything that parses to an object goes to the service.
	``NaN`` and ``Infinity`` are not JSON and are refused.
	"""
	try:
		payload = json.loads(raw_text, parse_constant=_reject_constant)
	except (ValueError, RecursionError):
		return None
	return payload if isinstance(payload, dict) else None


def _usable_id(value: Any) -> bool:
	if isinstance(value, bool):
		return False
	return isinstance(value, int) or (isinstance(value, str) and value != "")


def _is_number(value: Any) -> bool:
	return isinstance(value, (int, float)) and not isinstance(value, bool)


class ReceiptsController:
	"""Runs refresh and submit against the service and keeps ``state`` coherent.

	The two actions share one lock, so they never interleave. After ``close()``
	results that arrive late are dropped instead of touching ``state``.
	"""

	def __init__(
		self,
		api: ReceiptsApi,
		state: ViewState | None = None,
		enrich_concurrency: int = 16,
	) -> None:
		self.api = api
		self.state = state or ViewState()
		self.enrich_concurrency = enrich_concurrency
		self._lock: asyncio.Lock | None = None
		self._lock_loop: asyncio.AbstractEventLoop | None = None
		self._live = True

	@property
	def live(self) -> bool:
		return self._live

	def close(self) -> None:
		self._live = False

	def _apply(self, mutate: Callable[..., None], *args: Any) -> None:
		if not self._live:
			log.debug("controller closed, dropping %s", mutate.__name__)
			return
		mutate(*args)

	def _action_lock(self) -> asyncio.Lock:
		# one lock per event loop; a lock bound to a finished loop is unusable
		loop = asyncio.get_running_loop()
		if self._lock is None or self._lock_loop is not loop:
			self._lock = asyncio.Lock()
			self._lock_loop = loop
		return self._lock

	@asynccontextmanager
	async def _action(self, name: str):
		async with self._action_lock():
			self.state.busy = True
			try:
				with tracer.start_as_current_span(f"client.{name}"):
					yield
			finally:
				self.state.busy = False

	async def refresh(self) -> None:
		async with self._action("refresh"):
			self._apply(self.state.clear_error)
			try:
				summaries = await self.api.list_receipts()
			except ApiError as e:
				log.error("error fetching receipts: %s", e)
				self._apply(self.state.set_error, f"Failed to fetch receipts: {e.detail}")
				return

			enriched = await enrich_receipts(
				self.api, summaries, concurrency=self.enrich_concurrency
			)
			self._apply(self.state.apply_refresh, enriched)
			log.info("refreshed receipts", extra={"count": len(enriched)})

	async def submit(self, raw_text: str) -> None:
		async with self._action("submit"):
			self._apply(self.state.set_draft, raw_text)
			self._apply(self.state.clear_error)

			payload = parse_payload(raw_text)
			if payload is None:
				self._apply(self.state.set_error, INVALID_JSON)
				return

			try:
				body = await self.api.process(payload)
			except ApiError as e:
				log.error("error processing receipt: %s", e)
				self._apply(self.state.set_error, f"Failed to process receipt: {e.detail}")
				return

			receipt_id = body.get("id") if isinstance(body, dict) else None
			if not _usable_id(receipt_id):
				log.error("process response carried no id", extra={"body": repr(body)[:200]})
				self._apply(self.state.set_error, INVALID_RESPONSE)
				return

			data = {k: v for k, v in payload.items() if k != "points"}
			data["id"] = receipt_id
			if _is_number(body.get("points")):
				data["points"] = body["points"]

			receipt = Receipt.model_validate(data)
			self._apply(self.state.apply_submission, receipt)
			log.info(
				"submitted receipt",
				extra={"receipt_id": str(receipt_id), "points": data.get("points")},
			)
