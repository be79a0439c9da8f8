from __future__ import annotations

import logging
from collections.abc import Iterator  # noqa: TC003

import pytest

from brewmatch.common.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_level_names_are_accepted() -> None:
    configure_logging(level="warning", force=True)

    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING


def test_debug_lets_transport_loggers_through() -> None:
    configure_logging(level=logging.DEBUG, force=True)

    assert logging.getLogger("httpcore").level == logging.NOTSET


def test_unknown_level_name_is_rejected() -> None:
    with pytest.raises(ValueError, match="loud"):
        configure_logging(level="loud")
