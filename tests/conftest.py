import logging

import pytest

from kaladata.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _reset_reporting():
    """Each test starts and ends with a silent reporter and no log handlers."""
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)
    logger = logging.getLogger("kaladata")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
