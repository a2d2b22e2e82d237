"""Centralized logging configuration for the FPL head-to-head engine."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, MutableMapping, Optional

# Modules that log one line per player; kept at WARNING unless engine_debug is set
CHATTY_MODULES = ('fplh2h.bonus', 'fplh2h.substitutions')


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    engine_debug: bool = False,
) -> logging.Logger:
    """
    Configure logging for the engine.

    Creates a timestamped file handler (detailed format) and a console
    handler (simple format) on the ``fplh2h`` logger.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level (default: INFO)
        log_to_file: Whether to log to file (default: True)
        log_to_console: Whether to log to console (default: True)
        engine_debug: Emit per-player bonus and substitution decisions

    Returns:
        Configured logger instance

    Example:
        from fplh2h.logging_config import setup_logging
        logger = setup_logging(log_to_file=False)
        logger.info("Scoring round 12")
    """
    logger = logging.getLogger('fplh2h')
    logger.setLevel(level)
    logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    simple_formatter = logging.Formatter('%(levelname)s: %(message)s')

    if log_to_file:
        if log_dir is None:
            log_dir = Path('logs')
        log_dir.mkdir(exist_ok=True)

        log_file = log_dir / f'fplh2h_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    chatty_level = logging.DEBUG if engine_debug else max(level, logging.WARNING)
    for name in CHATTY_MODULES:
        logging.getLogger(name).setLevel(chatty_level)

    return logger


class RoundLogger(logging.LoggerAdapter):
    """Prefixes messages with the manager and round being computed."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        entry_id = self.extra.get('entry_id') if self.extra else None
        round_number = self.extra.get('round') if self.extra else None
        return f'[entry {entry_id} GW{round_number}] {msg}', kwargs


def get_logger(name: str = 'fplh2h') -> logging.Logger:
    """
    Get a logger instance.

    If setup_logging() hasn't been called, returns a basic logger.
    """
    return logging.getLogger(name)


def get_round_logger(name: str, entry_id: int, round_number: int) -> RoundLogger:
    """Get a logger that tags every message with ``entry_id`` and ``round_number``."""
    return RoundLogger(get_logger(name), {'entry_id': entry_id, 'round': round_number})
