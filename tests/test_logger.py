"""Tests for webfit.logger module."""
import logging

import pytest

from webfit.errors import NotFoundError
from webfit.logger import log_function_call, setup_logger


@pytest.fixture
def webfit_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="webfit")
    return caplog


class TestSetupLogger:
    def test_level_and_file(self, tmp_path):
        log_file = tmp_path / "logs" / "webfit.log"
        log = setup_logger(name="webfit.test", level="debug", log_file=str(log_file), console=False)

        log.info("hello")
        for handler in log.handlers:
            handler.flush()

        assert log.level == logging.DEBUG
        assert "hello" in log_file.read_text(encoding="utf-8")

    def test_unknown_level_falls_back_to_info(self):
        log = setup_logger(name="webfit.test2", level="chatty", console=False)
        assert log.level == logging.INFO

    def test_reconfigure_replaces_handlers(self):
        setup_logger(name="webfit.test3")
        log = setup_logger(name="webfit.test3")
        assert len(log.handlers) == 1


class TestLogFunctionCall:
    def test_success(self, webfit_logs):
        @log_function_call
        def add(repo, a, b):
            return a + b

        assert add(None, 1, 2) == 3
        assert "Calling add with args=(1, 2)" in webfit_logs.text

    def test_domain_error_is_a_warning(self, webfit_logs):
        @log_function_call
        def missing(repo):
            raise NotFoundError("Goal x not found")

        with pytest.raises(NotFoundError):
            missing(None)

        record = [r for r in webfit_logs.records if "rejected" in r.getMessage()][0]
        assert record.levelno == logging.WARNING

    def test_unexpected_error_is_logged_with_traceback(self, webfit_logs):
        @log_function_call
        def broken(repo):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            broken(None)

        record = [r for r in webfit_logs.records if "broken failed" in r.getMessage()][0]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
