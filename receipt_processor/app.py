from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import TextIO

from .client import ReceiptsController, build_controller
from .client.state import ViewState
from .config import SERVICE_NAME, Settings, load_settings
from .logging import configure_logging
from .version import get_version_info

log = logging.getLogger(__name__)


def render(state: ViewState, out: TextIO | None = None) -> None:
	out = out or sys.stdout
	if state.error:
		print(f"error: {state.error}", file=out)

	receipts = state.receipts
	if not receipts:
		print("No receipts processed yet.", file=out)
		return

	for r in receipts:
		data = r.as_dict()
		print(data.get("retailer", "(unknown retailer)"), file=out)
		print(f"  ID: {r.id}", file=out)
		print(f"  Date: {data.get('purchaseDate', '')}", file=out)
		print(f"  Time: {data.get('purchaseTime', '')}", file=out)
		print(f"  Total: ${data.get('total', '')}", file=out)
		print(f"  Points: {r.points if r.has_points else '-'}", file=out)


def _origin(settings: Settings) -> str:
	host = "localhost" if settings.host in ("0.0.0.0", "::") else settings.host
	return f"http://{host}:{settings.port}"


async def _run_list(controller: ReceiptsController) -> None:
	try:
		await controller.refresh()
	finally:
		await controller.api.aclose()


async def _run_submit(controller: ReceiptsController, raw_text: str) -> None:
	try:
		await controller.submit(raw_text)
		if controller.state.error is None:
			print("receipt processed")
	finally:
		await controller.api.aclose()


def serve(settings: Settings) -> None:
	import uvicorn

	log.info(
		"Starting receipt-processor service",
		extra={"host": settings.host, "port": settings.port, **get_version_info()},
	)
	uvicorn.run(
		"receipt_processor.main:create_app",
		factory=True,
		host=settings.host,
		port=settings.port,
		log_config=None,
	)


def main(argv: list[str] | None = None) -> int:
	parser = argparse.ArgumentParser(
		prog=SERVICE_NAME, description="Submit receipts and view their points"
	)
	parser.add_argument(
		"--version", action="store_true", help="print version information and exit"
	)
	sub = parser.add_subparsers(dest="command")

	p_serve = sub.add_parser("serve", help="run the receipt processing service")
	p_serve.add_argument("--host", default=None, help="bind address (default: SERVER_HOST)")
	p_serve.add_argument("--port", type=int, default=None, help="port (default: SERVER_PORT)")

	p_list = sub.add_parser("list", help="show processed receipts with points")
	p_list.add_argument("--api-url", default=None, help="service base URL")

	p_submit = sub.add_parser("submit", help="submit a receipt JSON file ('-' for stdin)")
	p_submit.add_argument("file")
	p_submit.add_argument("--api-url", default=None, help="service base URL")

	args = parser.parse_args(argv)

	settings = load_settings()
	configure_logging(
		service=SERVICE_NAME, json_mode=settings.json_logs, level=settings.log_level
	)

	if args.version:
		for k, v in get_version_info().items():
			print(f"{k}: {v}")
		return 0

	if args.command == "serve":
		if args.host:
			settings = replace(settings, host=args.host)
		if args.port:
			settings = replace(settings, port=args.port)
		try:
			serve(settings)
		except Exception as e:
			log.error("Server failed to start", extra={"error": str(e)})
			return 1
		return 0

	if args.command not in ("list", "submit"):
		parser.print_help()
		return 2

	raw_text = None
	if args.command == "submit":
		if args.file == "-":
			raw_text = sys.stdin.read()
		else:
			try:
				with open(args.file, encoding="utf-8") as f:
					raw_text = f.read()
			except OSError as e:
				print(f"error: cannot read {args.file}: {e.strerror}", file=sys.stderr)
				return 1

	if args.api_url is not None:
		settings = replace(settings, api_url=args.api_url.rstrip("/"))
	controller = build_controller(settings, origin=_origin(settings))

	if raw_text is None:
		asyncio.run(_run_list(controller))
	else:
		asyncio.run(_run_submit(controller, raw_text))

	render(controller.state)
	return 1 if controller.state.error else 0


if __name__ == "__main__":
	sys.exit(main())
