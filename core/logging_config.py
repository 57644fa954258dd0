"""
Logging setup for Diagnostics Explorer.

Engine modules log through ``logging.getLogger(__name__)``; this module only
decides where those records end up. ``configure_logging`` applies the
``[logging]`` table of config.toml::

    [logging]
    level = "DEBUG"
    log_file = "logs/explorer.log"

and runs once per process, when the session registry creates its first
session. ``setup_logging`` stays available for callers that want to set
handlers up explicitly.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import Config

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_DIR = 'logs'

# Set once the [logging] section has been applied
_configured = False


def _resolve_level(level: str) -> int:
    """Numeric level for a level name; unknown names map to INFO."""
    numeric_level = logging.getLevelName(str(level).upper())
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def _resolve_log_path(log_file: str, log_dir: Optional[str]) -> Path:
    """
    Where the log file goes.

    A bare file name lands in ``log_dir`` (``logs`` by default); a path with
    a directory part is used as written unless ``log_dir`` is given.
    """
    path = Path(log_file)
    if log_dir is not None:
        return Path(log_dir) / path.name
    if path.parent == Path('.'):
        return Path(DEFAULT_LOG_DIR) / path
    return path


def _install(root: logging.Logger, handler: logging.Handler, level: int,
             formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Replace the root handlers with a console handler and an optional file handler.

    Args:
        level: Level name ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Log file name or path (optional)
        log_dir: Directory for the log file (optional)
        format_string: Record format (defaults to DEFAULT_FORMAT)
    """
    numeric_level = _resolve_level(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    _install(root, logging.StreamHandler(), numeric_level, formatter)

    if log_file:
        log_path = _resolve_log_path(log_file, log_dir)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _install(root, logging.FileHandler(log_path), numeric_level, formatter)
        logger.info(f"Explorer log file: {log_path}")

    logger.info(f"Explorer logging configured at {logging.getLevelName(numeric_level)}")


def configure_logging(config: Config, force: bool = False) -> bool:
    """
    Apply the [logging] section of a configuration.

    Args:
        config: Loaded configuration
        force: Re-apply even if logging was already configured

    Returns:
        True if handlers were (re)installed
    """
    global _configured
    if _configured and not force:
        return False

    errors = config.logging.validate()
    if errors:
        logger.warning(f"Invalid [logging] section ({'; '.join(errors)}); falling back to INFO")

    setup_logging(level=config.logging.level, log_file=config.logging.log_file or None)
    _configured = True
    return True


def reset_logging_state() -> None:
    """Allow configure_logging to run again (useful for testing)"""
    global _configured
    _configured = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Change the level of the root logger and every installed handler."""
    numeric_level = _resolve_level(level)
    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers:
        handler.setLevel(numeric_level)
    logger.info(f"Explorer log level set to {logging.getLevelName(numeric_level)}")
