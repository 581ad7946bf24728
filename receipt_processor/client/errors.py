"""Error types for the receipts client."""

from typing import Optional


class ApiError(Exception):
	"""A call to the receipts service failed.

	``detail`` is what gets shown to the user: the service's error message when
	it sent one, the raw response body otherwise, or the transport failure text.
	"""

	def __init__(
		self, detail: str, status_code: Optional[int] = None, cause: Optional[Exception] = None
	):
		super().__init__(detail)
		self.detail = detail
		self.status_code = status_code
		self.cause = cause

	def __str__(self) -> str:
		if self.status_code is not None:
			return f"{self.status_code}: {self.detail}"
		return self.detail
