from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from ..schemas import ErrorBody, ErrorResponse, PointsResponse, ProcessResponse, ReceiptIn
from ..service import DuplicateReceiptError, ReceiptService

log = logging.getLogger(__name__)


class Health(BaseModel):
	status: str = "ok"


def http_error(
	code: str, message: str, status: int, details: dict | None = None
) -> JSONResponse:
	return JSONResponse(
		status_code=status,
		content=ErrorResponse(
			error=ErrorBody(code=code, message=message, details=details or {})
		).model_dump(),
	)


def _first_problem(exc: ValidationError) -> dict:
	err = exc.errors(include_url=False, include_input=False)[0]
	return {
		"field": ".".join(str(p) for p in err["loc"]),
		"reason": err["msg"],
	}


def build_router(svc: ReceiptService) -> APIRouter:
	router = APIRouter()

	@router.get("/health", response_model=Health)
	async def health() -> Health:
		return Health()

	@router.get("/receipts")
	async def list_receipts() -> list[dict]:
		return [r.summary() for r in svc.list_receipts()]

	@router.post("/receipts/process", response_model=ProcessResponse)
	async def process(request: Request):
		try:
			payload = json.loads(await request.body())
		except (json.JSONDecodeError, UnicodeDecodeError):
			return http_error("INVALID_RECEIPT", "Invalid receipt format", 400)

		try:
			receipt = ReceiptIn.model_validate(payload)
		except ValidationError as e:
			return http_error(
				"INVALID_RECEIPT", "Invalid receipt format", 400, _first_problem(e)
			)

		try:
			return svc.process(receipt)
		except DuplicateReceiptError as e:
			return http_error("DUPLICATE_RECEIPT", str(e), 409)
		except Exception as e:
			log.exception("process failed")
			return http_error(
				"INTERNAL", "Failed to process receipt", 500, {"reason": str(e)}
			)

	@router.get("/receipts/{receipt_id}/points", response_model=PointsResponse)
	async def points(receipt_id: str):
		try:
			return PointsResponse(points=svc.points(receipt_id))
		except KeyError:
			return http_error(
				"RECEIPT_NOT_FOUND", f"receipt {receipt_id!r} not found", 404
			)

	return router
