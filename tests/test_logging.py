import json
import logging

from receipt_processor.logging import LokiJSONFormatter


def test_json_lines_carry_service_and_level() -> None:
	formatter = LokiJSONFormatter(
		"%(timestamp)s %(level)s %(service)s %(name)s %(message)s",
		static_fields={"service": "receipt-processor"},
	)
	record = logging.LogRecord(
		"receipt_processor.client.enrich", logging.WARNING, __file__, 1, "lookup failed", None, None
	)
	record.receipt_id = "abc"

	line = json.loads(formatter.format(record))

	assert line["level"] == "warning"
	assert line["service"] == "receipt-processor"
	assert line["message"] == "lookup failed"
	assert line["receipt_id"] == "abc"
	assert "levelname" not in line
	assert "trace_id" not in line
