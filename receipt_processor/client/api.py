from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..schemas import Points, Receipt, ReceiptId
from .errors import ApiError

log = logging.getLogger(__name__)


def _detail(resp: httpx.Response) -> str:
	try:
		body = resp.json()
	except ValueError:
		return resp.text or resp.reason_phrase or f"HTTP {resp.status_code}"

	if isinstance(body, dict):
		err = body.get("error")
		if isinstance(err, dict) and err.get("message"):
			return str(err["message"])
		if isinstance(err, str) and err:
			return err
	return resp.text


class ReceiptsApi:
	"""Thin async wrapper over the receipt processing endpoints.

	``prefix`` is prepended to every path; empty means paths are sent as-is and
	resolve against the underlying client's own ``base_url``.
	"""

	def __init__(
		self,
		prefix: str = "",
		client: httpx.AsyncClient | None = None,
		timeout: float | None = None,
		origin: str = "",
	) -> None:
		self.prefix = prefix.rstrip("/")
		self._owns_client = client is None
		self._client = client or httpx.AsyncClient(
			base_url=origin, timeout=httpx.Timeout(timeout)
		)

	async def __aenter__(self) -> ReceiptsApi:
		return self

	async def __aexit__(self, *exc) -> None:
		await self.aclose()

	async def aclose(self) -> None:
		if self._owns_client:
			await self._client.aclose()

	async def _request(self, method: str, path: str, **kwargs) -> Any:
		url = f"{self.prefix}{path}"
		try:
			resp = await self._client.request(method, url, **kwargs)
		except httpx.HTTPError as e:
			raise ApiError(str(e) or type(e).__name__, cause=e) from e

		if resp.is_error:
			raise ApiError(_detail(resp), status_code=resp.status_code)

		try:
			return resp.json()
		except ValueError as e:
			raise ApiError("response was not valid JSON", resp.status_code, e) from e

	async def list_receipts(self) -> list[Receipt]:
		body = await self._request("GET", "/receipts")
		if not isinstance(body, list) or not all(isinstance(r, dict) for r in body):
			raise ApiError("expected a list of receipts")
		if any(r.get("id") in (None, "") for r in body):
			raise ApiError("malformed receipt in list: missing id")
		# summaries never carry points; those come from the per-receipt lookup
		try:
			return [
				Receipt.model_validate({k: v for k, v in r.items() if k != "points"})
				for r in body
			]
		except ValidationError as e:
			raise ApiError("malformed receipt in list", cause=e) from e

	async def get_points(self, receipt_id: ReceiptId) -> Points:
		body = await self._request("GET", f"/receipts/{receipt_id}/points")
		points = body.get("points") if isinstance(body, dict) else None
		if isinstance(points, bool) or not isinstance(points, (int, float)):
			raise ApiError(f"no points in response for receipt {receipt_id}")
		return points

	async def process(self, payload: dict[str, Any]) -> Any:
		return await self._request(
			"POST",
			"/receipts/process",
			json=payload,
			headers={"Content-Type": "application/json"},
		)
