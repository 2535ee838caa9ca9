import logging

from factorwise.utils.logger import setup_logger


def test_setup_logger_is_idempotent():
    first = setup_logger("factorwise.test_logger")
    second = setup_logger("factorwise.test_logger")

    assert first is second
    assert first.level == logging.INFO
    assert len(first.handlers) == 1
    assert first.propagate is False
