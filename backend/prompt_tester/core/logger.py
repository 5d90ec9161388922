"""
Logging setup.

All modules log through named children of the ``prompt_tester`` logger.
"""

import logging
import sys
from typing import Optional

from prompt_tester.core.config import get_settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(name: str = "prompt_tester", level: Optional[str] = None) -> logging.Logger:
    """Return a configured logger, attaching a stream handler once."""
    settings = get_settings()
    log = logging.getLogger(name)

    log.setLevel((level or settings.LOG_LEVEL).upper())

    # Children propagate to the package logger, which owns the only handler
    root = logging.getLogger("prompt_tester")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    return log


logger = setup_logger()
