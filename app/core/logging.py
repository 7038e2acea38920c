import logging
import sys
from typing import Optional

from app.core.config import settings

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "title-resolver"


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """Attach a single stdout handler to the ``app`` logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger("app")
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt or settings.LOG_FORMAT or DEFAULT_FORMAT))
        logger.addHandler(handler)

    return logger
