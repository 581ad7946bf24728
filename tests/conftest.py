from __future__ import annotations

import json
import re
from typing import Any, Callable

import httpx
import pytest

from receipt_processor.client import ReceiptsApi, ReceiptsController

_POINTS_PATH = re.compile(r"/receipts/([^/]+)/points")

TARGET_RECEIPT = {
	"retailer": "Target",
	"purchaseDate": "2022-01-01",
	"purchaseTime": "13:01",
	"items": [
		{"shortDescription": "Mountain Dew 12PK", "price": "6.49"},
		{"shortDescription": "Emils Cheese Pizza", "price": "12.25"},
		{"shortDescription": "Knorr Creamy Chicken", "price": "1.26"},
		{"shortDescription": "Doritos Nacho Cheese", "price": "3.35"},
		{"shortDescription": "   Klarbrunn 12-PK 12 FL OZ  ", "price": "12.00"},
	],
	"total": "35.35",
}

CORNER_MARKET_RECEIPT = {
	"retailer": "M&M Corner Market",
	"purchaseDate": "2022-03-20",
	"purchaseTime": "14:33",
	"items": [
		{"shortDescription": "Gatorade", "price": "2.25"},
		{"shortDescription": "Gatorade", "price": "2.25"},
		{"shortDescription": "Gatorade", "price": "2.25"},
		{"shortDescription": "Gatorade", "price": "2.25"},
	],
	"total": "9.00",
}


class FakeReceiptsService:
	"""Stands in for the receipt processing service behind httpx.MockTransport."""

	def __init__(self) -> None:
		self.receipts: list[dict[str, Any]] = []
		self.points: dict[str, Any] = {}
		self.failing_points: set[str] = set()
		self.list_error: Exception | None = None
		self.list_hook: Callable[[], Any] | None = None
		self.process_status = 200
		self.process_body: Any = {}
		self.submitted: list[dict[str, Any]] = []
		self.requests: list[httpx.Request] = []

	def handler(self, request: httpx.Request) -> httpx.Response:
		self.requests.append(request)
		path = request.url.path

		if request.method == "GET" and path == "/receipts":
			if self.list_hook is not None:
				self.list_hook()
			if self.list_error is not None:
				raise self.list_error
			return httpx.Response(200, json=self.receipts)

		m = _POINTS_PATH.fullmatch(path)
		if request.method == "GET" and m:
			receipt_id = m.group(1)
			if receipt_id in self.failing_points:
				return httpx.Response(500, text="points backend exploded")
			if receipt_id not in self.points:
				return httpx.Response(404, json={"error": {"code": "RECEIPT_NOT_FOUND", "message": "not found"}})
			return httpx.Response(200, json={"points": self.points[receipt_id]})

		if request.method == "POST" and path == "/receipts/process":
			self.submitted.append(json.loads(request.content))
			return httpx.Response(self.process_status, json=self.process_body)

		return httpx.Response(404, text="no route")

	def api(self, handler=None) -> ReceiptsApi:
		transport = httpx.MockTransport(handler or self.handler)
		client = httpx.AsyncClient(transport=transport, base_url="http://receipts.test")
		return ReceiptsApi(client=client)

	def controller(self, handler=None, enrich_concurrency: int = 16) -> ReceiptsController:
		return ReceiptsController(self.api(handler), enrich_concurrency=enrich_concurrency)


@pytest.fixture()
def fake() -> FakeReceiptsService:
	return FakeReceiptsService()


@pytest.fixture()
def target_receipt() -> dict[str, Any]:
	return json.loads(json.dumps(TARGET_RECEIPT))


@pytest.fixture()
def corner_market_receipt() -> dict[str, Any]:
	return json.loads(json.dumps(CORNER_MARKET_RECEIPT))
