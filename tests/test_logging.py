"""
Tests for the logging setup driven by Settings.
"""

import logging

import pytest

from coach_server.core.config import Settings
from coach_server.utils.logging import _resolve_level, setup_logging


@pytest.fixture
def restore_levels():
    root = logging.getLogger()
    saved = root.level
    yield
    root.setLevel(saved)
    logging.getLogger("coach.test.client").setLevel(logging.NOTSET)


class TestResolveLevel:

    @pytest.mark.parametrize(
        "level, debug, expected",
        [
            (None, False, logging.INFO),
            (None, True, logging.DEBUG),
            ("warning", True, logging.WARNING),
            (" ERROR ", False, logging.ERROR),
            (logging.CRITICAL, False, logging.CRITICAL),
        ],
    )
    def test_levels(self, level, debug, expected):
        assert _resolve_level(level, debug) == expected

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError):
            _resolve_level("chatty", False)


class TestSetupLogging:

    def test_explicit_level_and_quiet_loggers(self, restore_levels):
        effective = setup_logging(
            level="WARNING",
            quiet_loggers=["coach.test.client"],
            quiet_level="ERROR",
        )
        assert effective == logging.WARNING
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("coach.test.client").level == logging.ERROR

    def test_settings_defaults_quiet_http_clients(self):
        cfg = Settings(environment="test")
        assert cfg.log_level is None
        assert {"urllib3", "requests"} <= set(cfg.quiet_loggers)
        assert cfg.quiet_log_level == "WARNING"
