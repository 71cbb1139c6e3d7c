# src/docsalvage/core/utils/configure_logging.py
import logging
import sys
from typing import Dict, Optional, Union

from tqdm import tqdm

LogLevel = Union[str, int]


class LogWithTqdm(logging.Handler):
    """
    A logging handler that writes through `tqdm.write()`, so log lines emitted while
    a batch scan shows a progress bar do not break the bar.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level: LogLevel, fallback: int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level


def configure_logger(
        general_level: LogLevel = 'INFO',
        module_specific_levels: Optional[Dict[str, LogLevel]] = None,
        silenced_loggers: Optional[Dict[str, LogLevel]] = None
) -> logging.Logger:
    """
    Configures the root logger with a tqdm-aware handler and applies per-module levels.
    Returns the root logger.
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    # Muzzle noisy loggers by setting their level high.
    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))

    return root_logger
