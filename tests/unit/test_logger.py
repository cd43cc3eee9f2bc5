import logging

from app.logging.logger import ContextFormatter, Log


def _record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.makeLogRecord({"msg": message, "levelname": "INFO"})
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextFormatter:
    def test_plain_message_has_no_context_suffix(self) -> None:
        formatter = ContextFormatter("%(message)s")
        assert formatter.format(_record("hello")) == "hello"

    def test_context_is_appended_sorted(self) -> None:
        formatter = ContextFormatter("%(message)s")
        line = formatter.format(_record("OCR failed", stage="ocr", document_id=7))
        assert line == "OCR failed | document_id=7 stage=ocr"


class TestLog:
    def test_configure_is_idempotent(self) -> None:
        Log.configure("debug")
        Log.configure("info")
        handlers = logging.getLogger("taxdoc").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, ContextFormatter)
        assert logging.getLogger("taxdoc").level == logging.INFO

    def test_context_reaches_record(self, caplog) -> None:
        logger = logging.getLogger("taxdoc")
        logger.addHandler(caplog.handler)
        try:
            with caplog.at_level(logging.INFO, logger="taxdoc"):
                Log.info("claimed", document_id=3)
        finally:
            logger.removeHandler(caplog.handler)
        assert caplog.records[-1].document_id == 3
