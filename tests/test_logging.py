"""
StealthPay - Logging Tests
============================
Test JSONFormatter, PerformanceLogger e setup_logging.
"""

import json
import logging
import sys

from stealth_pay.logging_setup import (
    JSONFormatter,
    PerformanceLogger,
    get_logger,
    setup_logging,
)


class TestJSONFormatter:
    """Test formatter JSON"""

    def test_format_with_extra(self):
        """Test campi base + extra_data"""
        record = logging.LogRecord("stealthpay.test", logging.INFO, __file__, 10, "hello %s", ("world",), None)
        record.extra_data = {"transfer_id": "abc"}

        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["extra_data"] == {"transfer_id": "abc"}
        assert data["timestamp"].endswith("Z")

    def test_format_exception(self):
        """Test eccezione serializzata"""
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()

        record = logging.LogRecord("stealthpay.test", logging.ERROR, __file__, 10, "failed", (), exc_info)
        data = json.loads(JSONFormatter().format(record))
        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "boom"


class TestPerformanceLogger:
    """Test PerformanceLogger"""

    def test_elapsed_recorded(self):
        """Test durata misurata"""
        with PerformanceLogger(get_logger("test"), "noop") as perf:
            pass
        assert perf.elapsed_ms is not None
        assert perf.elapsed_ms >= 0

    def test_threshold_warning(self, caplog):
        """Test warning oltre soglia"""
        logger = get_logger("test.perf")
        perf = PerformanceLogger(logger, "scan", threshold_ms=1)
        with caplog.at_level(logging.DEBUG, logger="stealthpay"):
            with perf:
                sum(range(200000))

        if perf.elapsed_ms > 1:
            assert any(r.levelno == logging.WARNING and "scan took" in r.getMessage() for r in caplog.records)


class TestSetupLogging:
    """Test setup_logging"""

    def test_file_handlers(self, temp_data_dir):
        """Test log JSON su file"""
        root = logging.getLogger("stealthpay")
        try:
            logger = setup_logging(
                log_level="DEBUG",
                log_to_file=True,
                log_dir=temp_data_dir,
                enable_console=False,
            )
            logger.info("Registry ready", extra_data={"backend": "memory"})
            for handler in root.handlers:
                handler.flush()

            line = (temp_data_dir / "stealthpay.log").read_text(encoding="utf-8").splitlines()[-1]
            assert json.loads(line)["extra_data"] == {"backend": "memory"}
        finally:
            for handler in list(root.handlers):
                handler.close()
            root.handlers.clear()

    def test_console_disabled(self):
        """Test nessun handler senza console e file"""
        root = logging.getLogger("stealthpay")
        try:
            setup_logging(enable_console=False)
            assert root.handlers == []
        finally:
            root.handlers.clear()
