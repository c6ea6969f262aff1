import sys
import os
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from timednotes.logging_setup import LOGGER_NAME, SESSION_ID, setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = (list(logger.handlers), logger.propagate, logger.level)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    yield logger
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    for h in saved[0]:
        logger.addHandler(h)
    logger.propagate, logger.level = saved[1], saved[2]


def test_setup_logging_writes_session_id(clean_logger, tmp_path):
    log = setup_logging(tmp_path)
    logging.getLogger(f"{LOGGER_NAME}.services.note_store").warning("disk full")
    log.info("adapter message")
    for h in clean_logger.handlers:
        h.flush()

    text = (tmp_path / f"{LOGGER_NAME}.log").read_text(encoding="utf-8")
    assert "disk full" in text
    assert "adapter message" in text
    assert f"sid={SESSION_ID}" in text


def test_setup_logging_is_idempotent(clean_logger, tmp_path):
    setup_logging(tmp_path)
    setup_logging(tmp_path)
    assert len(clean_logger.handlers) == 2
    assert clean_logger.propagate is False
