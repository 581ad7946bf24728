from __future__ import annotations

import logging
import threading
from collections import Counter

from .schemas import ReceiptIn, StoredReceipt

log = logging.getLogger(__name__)


def _fingerprint(receipt: ReceiptIn) -> tuple:
	items = Counter((i.short_description, i.price) for i in receipt.items)
	return (
		receipt.retailer,
		receipt.purchase_date,
		receipt.purchase_time,
		receipt.total,
		frozenset(items.items()),
	)


class ReceiptStore:
	"""In-memory receipt storage, keyed by id."""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._receipts: dict[str, StoredReceipt] = {}
		self._fingerprints: set[tuple] = set()

	def is_duplicate(self, receipt: ReceiptIn) -> bool:
		with self._lock:
			return _fingerprint(receipt) in self._fingerprints

	def save(self, receipt: StoredReceipt) -> None:
		with self._lock:
			self._receipts[receipt.id] = receipt
			self._fingerprints.add(_fingerprint(receipt))
		log.debug("stored receipt", extra={"receipt_id": receipt.id})

	def get(self, receipt_id: str) -> StoredReceipt:
		with self._lock:
			if receipt_id not in self._receipts:
				raise KeyError(receipt_id)
			return self._receipts[receipt_id]

	def all(self) -> list[StoredReceipt]:
		# newest first
		with self._lock:
			return list(reversed(self._receipts.values()))
