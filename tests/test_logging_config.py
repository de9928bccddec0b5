import logging

import pytest

from spviz.logging_config import setup_logging


@pytest.fixture
def spviz_logger():
    logger = logging.getLogger("spviz")
    saved = (logger.level, list(logger.handlers))
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]


def test_setup_is_idempotent(spviz_logger):
    setup_logging(logging.DEBUG)
    setup_logging(logging.DEBUG)
    assert len(spviz_logger.handlers) == 1
    assert spviz_logger.level == logging.DEBUG


def test_log_file(spviz_logger, tmp_path):
    log_file = tmp_path / "viewer.log"
    setup_logging(logging.INFO, str(log_file))
    assert len(spviz_logger.handlers) == 2

    logging.getLogger("spviz.integrator").info("hello from the integrator")
    for handler in spviz_logger.handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "Logging initialized." in text
    assert "spviz.integrator - INFO - hello from the integrator" in text
