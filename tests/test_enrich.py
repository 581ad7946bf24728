import asyncio
import logging

import httpx

from receipt_processor.client import enrich_receipts
from receipt_processor.schemas import Receipt


def _receipts(*ids) -> list[Receipt]:
	return [Receipt.model_validate({"id": i, "retailer": f"shop {i}"}) for i in ids]


def test_output_order_follows_input_not_completion(fake) -> None:
	delays = {"1": 0.05, "2": 0.03, "3": 0.01}
	fake.points = {"1": 1, "2": 2, "3": 3}

	async def handler(request: httpx.Request) -> httpx.Response:
		receipt_id = request.url.path.split("/")[2]
		await asyncio.sleep(delays[receipt_id])
		return fake.handler(request)

	api = fake.api(handler)
	out = asyncio.run(enrich_receipts(api, _receipts("1", "2", "3")))

	assert [(r.id, r.points) for r in out] == [("1", 1), ("2", 2), ("3", 3)]


def test_failures_are_logged_not_raised(fake, caplog) -> None:
	fake.points = {"1": 4}
	fake.failing_points = {"2"}
	api = fake.api()

	with caplog.at_level(logging.WARNING, logger="receipt_processor.client.enrich"):
		out = asyncio.run(enrich_receipts(api, _receipts("1", "2")))

	assert out[0].points == 4
	assert not out[1].has_points
	assert out[1].as_dict() == {"id": "2", "retailer": "shop 2"}
	assert "error fetching points for receipt 2" in caplog.text


def test_points_body_without_points_is_a_failure(fake) -> None:
	api = fake.api(lambda request: httpx.Response(200, json={"score": 3}))

	[out] = asyncio.run(enrich_receipts(api, _receipts("1")))

	assert not out.has_points


def test_network_error_on_one_item(fake) -> None:
	fake.points = {"2": 8}

	def handler(request: httpx.Request) -> httpx.Response:
		if request.url.path == "/receipts/1/points":
			raise httpx.ReadTimeout("timed out")
		return fake.handler(request)

	out = asyncio.run(enrich_receipts(fake.api(handler), _receipts("1", "2")))

	assert [r.has_points for r in out] == [False, True]


def test_receipt_without_id_is_returned_untouched(fake) -> None:
	bare = Receipt.model_validate({"retailer": "no id"})

	[out] = asyncio.run(enrich_receipts(fake.api(), [bare]))

	assert out.as_dict() == {"retailer": "no id"}
	assert fake.requests == []


def _max_in_flight(fake, count: int, concurrency: int) -> int:
	in_flight = 0
	peak = 0
	fake.points = {str(i): i for i in range(count)}

	async def handler(request: httpx.Request) -> httpx.Response:
		nonlocal in_flight, peak
		in_flight += 1
		peak = max(peak, in_flight)
		await asyncio.sleep(0.01)
		in_flight -= 1
		return fake.handler(request)

	ids = [str(i) for i in range(count)]
	out = asyncio.run(enrich_receipts(fake.api(handler), _receipts(*ids), concurrency))
	assert all(r.has_points for r in out)
	return peak


def test_concurrency_is_capped(fake) -> None:
	assert _max_in_flight(fake, 8, concurrency=2) == 2


def test_zero_concurrency_means_no_cap(fake) -> None:
	assert _max_in_flight(fake, 8, concurrency=0) == 8


def test_empty_input() -> None:
	assert asyncio.run(enrich_receipts(None, [])) == []
