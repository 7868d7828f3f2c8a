import sys

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def reset_logger():
    """CLI tests swap loguru sinks; put the default stderr sink back"""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")
