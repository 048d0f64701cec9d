import logging

import pytest

from marketlens.shared.logging.logger import get_logger, resolve_level, setup_logging


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogging:

    @pytest.mark.parametrize("raw, expected", [
        ("info", logging.INFO),
        (" DEBUG ", logging.DEBUG),
        (logging.WARNING, logging.WARNING),
        ("verbose", logging.INFO),
    ])
    def test_resolve_level(self, raw, expected):
        assert resolve_level(raw) == expected

    def test_setup_is_idempotent(self, clean_root):
        setup_logging("warning")
        setup_logging("warning")

        ours = [h for h in clean_root.handlers if h.get_name() == "marketlens-stdout"]
        assert len(ours) == 1
        assert clean_root.level == logging.WARNING

    def test_noisy_loggers_follow_debug(self, clean_root):
        setup_logging("INFO")
        assert logging.getLogger("websockets").level == logging.WARNING

        setup_logging("DEBUG")
        assert logging.getLogger("websockets").level == logging.DEBUG

    def test_namespaced_logger(self):
        assert get_logger("event_bus").name == "marketlens.event_bus"
