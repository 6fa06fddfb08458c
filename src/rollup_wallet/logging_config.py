"""
Structured logging setup.

The wallet is a library: it only binds loggers. Applications call
``setup_logging_from_config`` (or ``setup_logging``) once at startup.
"""

import logging
import sys
from typing import List, Optional

import structlog

from rollup_wallet.config import WalletConfig, get_config

_SHARED_PROCESSORS: List = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Route wallet logs through the stdlib ``rollup_wallet`` logger."""
    renderer = structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("rollup_wallet")
    package_logger.handlers = [handler]
    package_logger.setLevel(level.upper())
    package_logger.propagate = False


def setup_logging_from_config(config: Optional[WalletConfig] = None) -> None:
    """Configure logging from the wallet configuration."""
    config = config or get_config()
    setup_logging(config.log_level, config.log_json)
