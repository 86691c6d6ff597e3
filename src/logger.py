"""
Console logger for build agents.

Messages carry a level prefix; info goes to stdout, debug and errors to
stderr. Registered secrets (service principal secret, SCM password) are
masked in every message, since clone URLs and SDK errors can echo them.
"""

import os
import sys
from enum import Enum
from typing import Optional, Set

MASK = "***"
BANNER_WIDTH = 70


class LogLevel(Enum):
    DEBUG = 0
    INFO = 1
    ERROR = 2


# Shared across logger instances so set_log_level keeps the masks
_secrets: Set[str] = set()


def register_secret(value: Optional[str]):
    """Mask ``value`` in all future log output"""
    if value:
        _secrets.add(value)


def mask_secrets(message: str) -> str:
    # longest first so a secret containing another is masked whole
    for secret in sorted(_secrets, key=len, reverse=True):
        message = message.replace(secret, MASK)
    return message


class Logger:
    """Prefixing, secret-masking logger"""

    def __init__(self, level: str = "INFO"):
        try:
            self.level = LogLevel[level.upper()]
        except KeyError:
            self.level = LogLevel.INFO

    def _should_log(self, message_level: LogLevel) -> bool:
        return message_level.value >= self.level.value

    def _emit(self, message_level: LogLevel, prefix: str, message: str, stream=None):
        if self._should_log(message_level):
            print(f"{prefix} {mask_secrets(message)}", file=stream or sys.stdout)

    def debug(self, message: str):
        self._emit(LogLevel.DEBUG, "[DEBUG]", message, sys.stderr)

    def info(self, message: str):
        self._emit(LogLevel.INFO, "[INFO] ", message)

    def error(self, message: str):
        self._emit(LogLevel.ERROR, "[ERROR]", message, sys.stderr)

    def success(self, message: str):
        """Info-level message marking a completed stage"""
        self._emit(LogLevel.INFO, "[INFO]  ✓", message)

    def warning(self, message: str):
        """Info-level message; the build continues"""
        self._emit(LogLevel.INFO, "[INFO]  ⚠️ ", message)

    def banner(self, title: str):
        """Log a framed section title"""
        self.info("=" * BANNER_WIDTH)
        self.info(title)
        self.info("=" * BANNER_WIDTH)


# Global logger instance
_logger: Optional[Logger] = None


def get_logger() -> Logger:
    """Get or create global logger instance"""
    global _logger
    if _logger is None:
        _logger = Logger(os.getenv('LOG_LEVEL', 'INFO'))
    return _logger


def set_log_level(level: str):
    """Set global logger level"""
    global _logger
    _logger = Logger(level)
