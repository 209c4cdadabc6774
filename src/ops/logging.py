"""
Logging setup.
"""

from __future__ import annotations

import logging
import os


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: str, log_level: str) -> None:
    """
    Log to `log_path` and stderr.

    An unknown level name falls back to INFO rather than failing startup.
    """
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    requested = getattr(logging, str(log_level).upper(), None)
    level = requested if isinstance(requested, int) else logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )
    if level != requested:
        logging.warning(f"Unknown log level {log_level!r}, using INFO")
