"""Global pytest configuration."""

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Drop handlers installed by ``configure_logging`` so they never outlive a test."""
    yield
    logger = logging.getLogger("ichat")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
