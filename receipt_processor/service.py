from __future__ import annotations

import logging
import time
import uuid

from opentelemetry import trace

from .config import Settings
from .points import calculate_points
from .schemas import ProcessResponse, ReceiptIn, StoredReceipt
from .store import ReceiptStore

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class DuplicateReceiptError(Exception):
	pass


class ReceiptService:
	def __init__(self, settings: Settings, store: ReceiptStore | None = None) -> None:
		self.settings = settings
		self.store = store or ReceiptStore()

	def process(self, receipt: ReceiptIn) -> ProcessResponse:
		with tracer.start_as_current_span("service.process") as span:
			span.set_attribute("receipt.retailer", receipt.retailer)
			span.set_attribute("items.count", len(receipt.items))
			t0 = time.perf_counter()

			if self.store.is_duplicate(receipt):
				raise DuplicateReceiptError("This receipt has already been processed")

			points = calculate_points(receipt)
			stored = StoredReceipt(
				**receipt.model_dump(),
				id=str(uuid.uuid4()),
				points=points,
			)
			self.store.save(stored)

			span.set_attribute("receipt.id", stored.id)
			span.set_attribute("points", points)
			span.set_attribute("elapsed_secs", round(time.perf_counter() - t0, 3))

		log.info(
			"processed receipt",
			extra={"receipt_id": stored.id, "retailer": receipt.retailer, "points": points},
		)
		return ProcessResponse(id=stored.id, points=points)

	def points(self, receipt_id: str) -> int:
		with tracer.start_as_current_span("service.points") as span:
			span.set_attribute("receipt.id", receipt_id)
			return self.store.get(receipt_id).points

	def list_receipts(self) -> list[StoredReceipt]:
		return self.store.all()
