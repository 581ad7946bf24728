from __future__ import annotations

import math
import re
from datetime import datetime
from decimal import Decimal

from .schemas import ReceiptIn

_ALNUM = re.compile(r"[a-zA-Z0-9]")


def calculate_points(receipt: ReceiptIn) -> int:
	"""Score a validated receipt.

	- one point per alphanumeric character in the retailer name
	- 50 points when the total is a round dollar amount
	- 25 points when the total is a multiple of 0.25
	- 5 points for every two items
	- ceil(price * 0.2) for each item whose trimmed description length is a multiple of 3
	- 6 points when the purchase day is odd
	- 10 points when the purchase time is after 14:00 and before 16:00
	"""
	points = len(_ALNUM.findall(receipt.retailer))

	total = Decimal(receipt.total)
	if total == total.to_integral_value():
		points += 50
	if (total * 100) % 25 == 0:
		points += 25

	points += len(receipt.items) // 2 * 5

	for item in receipt.items:
		if len(item.short_description.strip()) % 3 == 0:
			points += math.ceil(Decimal(item.price) * Decimal("0.2"))

	if datetime.strptime(receipt.purchase_date, "%Y-%m-%d").day % 2 == 1:
		points += 6

	t = datetime.strptime(receipt.purchase_time, "%H:%M")
	if (t.hour == 14 and t.minute > 0) or t.hour == 15:
		points += 10

	return points
