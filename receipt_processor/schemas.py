from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from typing_extensions import Annotated


ISODateStr = Annotated[str, StringConstraints(pattern=r"^\d{4}-\d{2}-\d{2}$")]
ClockStr = Annotated[str, StringConstraints(pattern=r"^\d{2}:\d{2}$")]
AmountStr = Annotated[str, StringConstraints(pattern=r"^\d+\.\d{2}$")]
RetailerStr = Annotated[str, StringConstraints(pattern=r"^[\w\s\-&]+$")]
DescriptionStr = Annotated[str, StringConstraints(pattern=r"^[\w\s\-]+$")]

ReceiptId = Union[int, str]
Points = Union[int, float]


class Item(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	short_description: DescriptionStr = Field(alias="shortDescription")
	price: AmountStr


class ReceiptIn(BaseModel):
	"""A receipt as submitted to ``POST /receipts/process``."""

	model_config = ConfigDict(populate_by_name=True)

	retailer: RetailerStr
	purchase_date: ISODateStr = Field(alias="purchaseDate")
	purchase_time: ClockStr = Field(alias="purchaseTime")
	items: list[Item] = Field(min_length=1)
	total: AmountStr

	@field_validator("purchase_date")
	@classmethod
	def _real_date(cls, v: str) -> str:
		try:
			datetime.strptime(v, "%Y-%m-%d")
		except ValueError:
			raise ValueError("invalid purchase date") from None
		return v

	@field_validator("purchase_time")
	@classmethod
	def _real_time(cls, v: str) -> str:
		try:
			datetime.strptime(v, "%H:%M")
		except ValueError:
			raise ValueError("invalid purchase time") from None
		return v


class StoredReceipt(ReceiptIn):
	id: str
	points: int

	def summary(self) -> dict[str, Any]:
		# list view carries no points; clients look them up per receipt
		return self.model_dump(by_alias=True, exclude={"points"})


class ProcessResponse(BaseModel):
	id: str
	points: int


class PointsResponse(BaseModel):
	points: int


class ErrorBody(BaseModel):
	code: str
	message: str
	details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
	error: ErrorBody


class Receipt(BaseModel):
	"""A receipt as the client knows it.

	Every field of the submitted payload is carried through untouched. ``points``
	stays unset until a lookup or a submission supplies it; unset and ``0`` are
	different things.
	"""

	model_config = ConfigDict(extra="allow")

	id: Optional[ReceiptId] = None
	points: Optional[Points] = None

	@property
	def has_points(self) -> bool:
		return "points" in self.model_fields_set and self.points is not None

	def with_points(self, points: Points) -> Receipt:
		return Receipt.model_validate({**self.as_dict(), "points": points})

	def as_dict(self) -> dict[str, Any]:
		data = dict(self.model_extra or {})
		if "id" in self.model_fields_set:
			data["id"] = self.id
		if self.has_points:
			data["points"] = self.points
		return data
