from __future__ import annotations

import logging

import pytest

from photooverlay.logging import configure_logging

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_level():
    package_logger = logging.getLogger("photooverlay")
    previous = package_logger.level
    yield
    package_logger.setLevel(previous)


def test_level_name_is_applied_to_package_logger() -> None:
    configure_logging("debug")

    assert logging.getLogger("photooverlay").level == logging.DEBUG


def test_unknown_level_name_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown log level"):
        configure_logging("chatty")
