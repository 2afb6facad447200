from __future__ import annotations

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[Union[str, int]] = None) -> None:
    """Initialise the root logger once with a stdout handler and *level*.

    ``level`` may be a logging constant or a name such as ``"debug"``; when
    omitted the configured ``log_level`` setting is used.
    """
    if level is None:
        from .config import get_settings

        level = get_settings().log_level

    if isinstance(level, str):
        name = level.strip().upper()
        desired = int(name) if name.isdigit() else logging.getLevelName(name)
        if not isinstance(desired, int):
            desired = logging.INFO
    else:
        desired = level

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        logging.captureWarnings(True)
    root.setLevel(desired)


__all__ = ["setup_logging", "LOG_FORMAT"]
