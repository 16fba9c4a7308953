"""
Structured logging for BranchAI.

Every component logs through a ComponentLogger, which serializes the
message and its context to a single JSON line under the ``branchai.<name>``
logger. LoggingManager wires those loggers to stderr and, optionally, to
rotating files in a log directory.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "branchai"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAIN_LOG_FILE = "branchai.log"
ERROR_LOG_FILE = "errors.log"


class LogLevel(Enum):
    """Log levels accepted on the command line."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ComponentLogger:
    """
    JSON-line logger scoped to one component.

    Context passed at construction is merged into every record; per-call
    ``extra`` values override it.
    """

    def __init__(self, component_name: str, extra_context: Optional[Dict[str, Any]] = None):
        """
        Args:
            component_name: Dotted component name, e.g. 'git.context'
            extra_context: Fields added to every record
        """
        self.component_name = component_name
        self.extra_context = extra_context or {}
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}")

    def _format_message(self, message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = {
            "timestamp": datetime.now().isoformat(),
            "component": self.component_name,
            "message": message,
        }
        record.update(self.extra_context)
        if extra:
            record.update(extra)
        return record

    def _emit(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]],
        exc_info: bool = False,
    ) -> None:
        record = self._format_message(message, extra)
        if exc_info:
            record["exception"] = True
        self.logger.log(level, json.dumps(record, default=str), exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        self._emit(logging.ERROR, message, extra, exc_info)

    def critical(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        self._emit(logging.CRITICAL, message, extra, exc_info)


class LoggingManager:
    """
    Owns the handlers on the ``branchai`` logger.

    The console handler writes to stderr so log lines never mix with the
    prompts on stdout. File handlers exist only when a log directory is given.
    """

    def __init__(self, log_dir: Optional[str] = None, log_level: str = "WARNING"):
        """
        Args:
            log_dir: Directory for branchai.log and errors.log, or None
            log_level: Level name for the console and main log file
        """
        self.log_dir = Path(log_dir) if log_dir else None
        self.log_level = getattr(logging, log_level.upper())
        self.component_loggers: Dict[str, ComponentLogger] = {}

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._configure_handlers()

    def _configure_handlers(self):
        formatter = logging.Formatter(LOG_FORMAT)

        branch_logger = logging.getLogger(ROOT_LOGGER_NAME)
        branch_logger.setLevel(self.log_level)
        branch_logger.propagate = False

        for handler in list(branch_logger.handlers):
            branch_logger.removeHandler(handler)
            handler.close()

        handlers = [(logging.StreamHandler(sys.stderr), self.log_level)]
        if self.log_dir is not None:
            handlers.append((
                logging.handlers.RotatingFileHandler(
                    self.log_dir / MAIN_LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3
                ),
                self.log_level,
            ))
            handlers.append((
                logging.handlers.RotatingFileHandler(
                    self.log_dir / ERROR_LOG_FILE, maxBytes=1024 * 1024, backupCount=2
                ),
                logging.ERROR,
            ))

        for handler, level in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            branch_logger.addHandler(handler)

    def get_component_logger(self, component_name: str, extra_context: Optional[Dict[str, Any]] = None) -> ComponentLogger:
        """Return the cached logger for this component and context."""
        key = f"{component_name}:{json.dumps(extra_context, sort_keys=True, default=str)}"
        if key not in self.component_loggers:
            self.component_loggers[key] = ComponentLogger(component_name, extra_context)
        return self.component_loggers[key]


_logging_manager: Optional[LoggingManager] = None


def setup_logging(log_dir: Optional[str] = None, log_level: str = "WARNING") -> LoggingManager:
    """Configure the process-wide LoggingManager and return it."""
    global _logging_manager
    _logging_manager = LoggingManager(log_dir, log_level)
    return _logging_manager


def get_logger(component_name: str, extra_context: Optional[Dict[str, Any]] = None) -> ComponentLogger:
    """
    Get a component logger.

    Module-level loggers are created at import time, before ``setup_logging``
    runs; those are plain ComponentLogger instances that start emitting once
    the ``branchai`` logger has handlers.
    """
    if _logging_manager is None:
        return ComponentLogger(component_name, extra_context)
    return _logging_manager.get_component_logger(component_name, extra_context)
