"""
Tests for logging setup
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from utils.logging_config import PROJECT_LOGGERS, log_error, setup_logging


@pytest.fixture
def restore_loggers():
    names = PROJECT_LOGGERS + ('raffle_test_a', 'raffle_test_b', 'sqlalchemy.engine')
    saved = {name: (logging.getLogger(name).level, list(logging.getLogger(name).handlers),
                    logging.getLogger(name).propagate) for name in names}
    yield
    for name, (level, handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate


def test_configures_engine_and_utils_loggers(restore_loggers):
    logger = setup_logging('debug')
    assert logger.name == 'raffle_engine'
    for name in PROJECT_LOGGERS:
        configured = logging.getLogger(name)
        assert configured.level == logging.DEBUG
        assert len(configured.handlers) == 1
        assert not configured.propagate


def test_third_party_loggers_quiet_at_info(restore_loggers):
    setup_logging('INFO')
    assert logging.getLogger('sqlalchemy.engine').level == logging.WARNING


def test_engine_messages_reach_the_log_file(tmp_path, restore_loggers):
    log_file = tmp_path / "logs" / "raffle.log"
    setup_logging('INFO', log_file=str(log_file), loggers=('raffle_test_a', 'raffle_test_b'))

    assert any(isinstance(h, RotatingFileHandler) for h in logging.getLogger('raffle_test_a').handlers)
    logging.getLogger('raffle_test_b.keeper').info("round closed")
    for handler in logging.getLogger('raffle_test_b').handlers:
        handler.flush()
    assert "round closed" in log_file.read_text(encoding='utf-8')


def test_repeated_setup_replaces_handlers(restore_loggers):
    setup_logging(loggers=('raffle_test_a',))
    logger = setup_logging(loggers=('raffle_test_a',))
    assert len(logger.handlers) == 1


def test_log_error_includes_context(caplog):
    logger = logging.getLogger('raffle_test_errors')
    with caplog.at_level(logging.ERROR, logger='raffle_test_errors'):
        try:
            raise ValueError("bad fee")
        except ValueError as e:
            log_error(logger, e, "Deploy failed")
    assert "Deploy failed: bad fee" in caplog.text
