# cartledger/utils/logging.py
import logging
import sys

from cartledger.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def _configure() -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger("cartledger")
    root.addHandler(handler)
    root.setLevel(LOG_LEVEL.upper())
    root.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    _configure()
    if not name.startswith("cartledger"):
        name = f"cartledger.{name}"
    return logging.getLogger(name)
