from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Sequence

from opentelemetry import trace

from ..schemas import Receipt
from .api import ReceiptsApi
from .errors import ApiError

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def enrich_receipts(
	api: ReceiptsApi, receipts: Sequence[Receipt], concurrency: int = 0
) -> list[Receipt]:
	"""Attach points to every receipt, one lookup per receipt, all in flight together.

	A failed lookup leaves its receipt without points and is only logged.
	Returns once every lookup has settled, in input order. ``concurrency``
	caps the lookups in flight; 0 means no cap.
	"""
	sem = asyncio.Semaphore(concurrency) if concurrency > 0 else None

	async def lookup(receipt: Receipt) -> Receipt:
		if receipt.id is None:
			log.warning("receipt has no id, skipping points lookup")
			return receipt
		try:
			async with sem or contextlib.nullcontext():
				points = await api.get_points(receipt.id)
		except ApiError as e:
			log.warning(
				"error fetching points for receipt %s: %s",
				receipt.id,
				e,
				extra={"receipt_id": str(receipt.id)},
			)
			return receipt
		return receipt.with_points(points)

	with tracer.start_as_current_span("client.enrich") as span:
		span.set_attribute("receipts.count", len(receipts))
		enriched = await asyncio.gather(*(lookup(r) for r in receipts))
		span.set_attribute(
			"receipts.with_points", sum(1 for r in enriched if r.has_points)
		)

	return list(enriched)
