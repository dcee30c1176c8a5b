import logging
from unittest.mock import patch

import pytest

from docbatch.cursor.logger import init_logger


@pytest.fixture(autouse=True)
def mock_backoff_sleep():
    with patch("docbatch.cursor.retry.sleep") as sleep:
        yield sleep


@pytest.fixture
def logger() -> logging.LoggerAdapter:
    return init_logger("unit-tests", "testCollection")
