import json
import logging

from inala.core.logging import get_logger, LogContext, StructuredFormatter


def test_log_context_stamps_records(caplog):
    logger = get_logger("tests.sales")
    with caplog.at_level(logging.INFO, logger="inala"):
        with LogContext(tenant_id="inala-butchery", entity_id="tx_1"):
            logger.info("Sale recorded")
        logger.info("Outside")

    inside, outside = caplog.records
    assert inside.tenant_id == "inala-butchery"
    assert inside.entity_id == "tx_1"
    assert not hasattr(outside, "tenant_id")


def test_explicit_extra_beats_context(caplog):
    logger = get_logger("tests.sales")
    with caplog.at_level(logging.INFO, logger="inala"):
        with LogContext(tenant_id="outer"):
            logger.info("Nested", extra={"tenant_id": "inner"})

    assert caplog.records[0].tenant_id == "inner"


def test_structured_formatter_emits_context():
    record = logging.LogRecord("inala.pos", logging.INFO, __file__, 10, "Voided %s", ("tx_9",), None)
    record.tenant_id = "kasi-spaza"

    payload = json.loads(StructuredFormatter().format(record))
    assert payload["message"] == "Voided tx_9"
    assert payload["tenant_id"] == "kasi-spaza"
    assert payload["level"] == "INFO"
