"""
Logging configuration for applications embedding the simulation engine.

Library modules only create loggers; nothing here runs on import. Call
setup_logging() once from an entry point (see demo.py).
"""

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Track handlers we installed so repeated calls stay idempotent
_installed_handlers = []


def setup_logging(level: Union[int, str] = "INFO",
                  log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Configure root logging with a console handler and an optional file handler.

    Args:
        level: Logging level name or number
        log_file: Optional path of a log file to append to

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    _installed_handlers.append(console)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root.addHandler(handler)
    root.setLevel(level)
    return root
