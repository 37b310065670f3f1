import json

from loguru import logger

from fuelpoints_api.core.logging import configure_logging
from fuelpoints_api.observability.tracing import parse_otlp_headers


def test_parse_otlp_headers() -> None:
    assert parse_otlp_headers(None) is None
    assert parse_otlp_headers("") is None
    assert parse_otlp_headers("api-key=abc, tenant = station-1,broken") == {
        "api-key": "abc",
        "tenant": "station-1",
    }


def test_logs_are_single_json_lines_with_context(capsys) -> None:
    configure_logging(service_name="fuelpoints-test", environment="development", version="0.0.1")

    logger.info("Pump created", pump_id="p-1")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["message"] == "Pump created"
    assert payload["pump_id"] == "p-1"
    assert payload["service"] == "fuelpoints-test"
    assert payload["level"] == "info"
