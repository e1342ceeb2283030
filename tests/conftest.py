# tests/conftest.py
import logging

import pytest

from checksumly.log_utils import LOGGER_NAME, shutdown_logging
from tests.helpers import write_files


@pytest.fixture
def tree(tmp_path):
    """
    Base folder laid out as:

        f1.txt
        A/a1.txt, A/a2.jpg
        A/deep/d1.txt
        B/b1.txt
        Folder/x.txt
        Folder2/y.txt
    """
    write_files(
        tmp_path,
        {
            "f1.txt": "1",
            "A/a1.txt": "a1",
            "A/a2.jpg": "a2",
            "A/deep/d1.txt": "d1",
            "B/b1.txt": "b1",
            "Folder/x.txt": "x",
            "Folder2/y.txt": "y",
        },
    )
    return tmp_path


@pytest.fixture
def table(tmp_path):
    return tmp_path / "checksum.check"


@pytest.fixture(autouse=True)
def reset_logging():
    """Keep handlers installed by the CLI from leaking between tests."""
    yield
    shutdown_logging()
    logging.getLogger(LOGGER_NAME).propagate = True
