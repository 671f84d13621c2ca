"""
Logging configuration for hdemix

Every pipeline stage logs through a child of the package logger
(`hdemix.segment`, `hdemix.overlap_add`, `hdemix.shift`, ...). Handlers live on
the package logger only; children propagate to it, so a single child can be
turned up to DEBUG for the log file while the console stays at the package
level.
"""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Set

LOGGER_NAME = "hdemix"

# Pipeline stages with their own logger
COMPONENTS = ("config", "normalizer", "shift", "overlap_add", "segment", "torch")

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Children whose level was set by the last setup_logging call
_tuned_components: Set[str] = set()


def _level(value: str) -> int:
    level = logging.getLevelName(str(value).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a child of it for `name`."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_component_levels(component_levels: Dict[str, str]):
    """Set levels on stage loggers, e.g. ``{"segment": "DEBUG"}``.

    Levels set by an earlier call are reset to NOTSET first, so each stage
    falls back to the package level unless named again.
    """
    for name in _tuned_components:
        get_logger(name).setLevel(logging.NOTSET)
    _tuned_components.clear()

    for name, value in component_levels.items():
        get_logger(name).setLevel(_level(value))
        _tuned_components.add(name)


def setup_logging(
    log_level: str = 'INFO',
    log_dir: Optional[Path] = None,
    component_levels: Optional[Dict[str, str]] = None,
) -> logging.Logger:
    """Setup package logging

    The console handler follows `log_level`. With `log_dir`, a rotating file
    handler is added that accepts DEBUG, so stages listed in
    `component_levels` at DEBUG reach the file even when the package level
    is higher.
    """
    package_level = _level(log_level)
    logger = get_logger()
    logger.setLevel(package_level)

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f'hdemix_{datetime.now().strftime("%Y%m%d")}.log'
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(package_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    set_component_levels(component_levels or {})
    if component_levels:
        logger.debug(f"Component log levels: {component_levels}")

    return logger
