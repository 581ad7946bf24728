from __future__ import annotations

from typing import Any, Iterable, Optional

from ..schemas import Receipt


class ViewState:
	"""What the user sees: the receipt collection, one error message, the draft.

	Only the controller mutates it, and only through the methods below.
	"""

	def __init__(self) -> None:
		self._receipts: list[Receipt] = []
		self.error: Optional[str] = None
		self.draft: str = ""
		self.busy: bool = False

	@property
	def receipts(self) -> list[Receipt]:
		return list(self._receipts)

	def apply_refresh(self, receipts: Iterable[Receipt]) -> None:
		self._receipts = list(receipts)
		self.error = None

	def apply_submission(self, receipt: Receipt) -> None:
		self._receipts.append(receipt)
		self.error = None
		self.draft = ""

	def set_error(self, message: str) -> None:
		self.error = message

	def clear_error(self) -> None:
		self.error = None

	def set_draft(self, text: str) -> None:
		self.draft = text

	def snapshot(self) -> list[dict[str, Any]]:
		return [r.as_dict() for r in self._receipts]
