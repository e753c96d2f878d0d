import logging
import os
from unittest.mock import patch

import pytest

from app.core.config import get_settings
from app.core.logging_config import DOMAIN_LOGGER_LEVELS, log_file_path, setup_logging


@pytest.fixture
def restore_logging():
    """Devuelve el logging global a su estado previo tras cada test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    levels = {name: logging.getLogger(name).level for name in DOMAIN_LOGGER_LEVELS}
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    for name, value in levels.items():
        logging.getLogger(name).setLevel(value)


def test_console_and_daily_file_handlers(tmp_path, restore_logging):
    setup_logging(log_dir=str(tmp_path))

    root = logging.getLogger()
    kinds = sorted(type(h).__name__ for h in root.handlers)
    assert kinds == ["FileHandler", "StreamHandler"]
    assert os.path.exists(log_file_path(str(tmp_path)))


def test_domain_loggers_keep_their_levels_outside_debug(tmp_path, restore_logging):
    with patch.object(get_settings(), "DEBUG_MODE", False):
        setup_logging(log_dir=str(tmp_path))

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("app.services.authorization").getEffectiveLevel() == logging.INFO
    assert logging.getLogger("app.services.schedule_policy").getEffectiveLevel() == logging.WARNING
    assert not logging.getLogger("app.services.schedule_policy").isEnabledFor(logging.INFO)


def test_debug_mode_lowers_domain_loggers(tmp_path, restore_logging):
    with patch.object(get_settings(), "DEBUG_MODE", True):
        setup_logging(log_dir=str(tmp_path))

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("app.services.schedule_policy").isEnabledFor(logging.DEBUG)
