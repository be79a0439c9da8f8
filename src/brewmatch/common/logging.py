"""Root logger setup for the brewmatch CLI."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Transport chatter from the vision client; only useful when debugging.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int | str = logging.INFO, force: bool = False) -> None:
    """Configure the root logger; ``level`` may be a number or a name such as ``"debug"``.

    HTTP transport loggers stay at WARNING unless the root level is DEBUG.
    """

    if isinstance(level, str):
        resolved = logging.getLevelNamesMapping().get(level.upper())
        if resolved is None:
            raise ValueError(f"Unknown log level {level!r}")
    else:
        resolved = level
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    transport_level = logging.NOTSET if resolved <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
