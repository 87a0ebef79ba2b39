"""
Structured logging system for TalentDesk.

Provides centralized logging with console and file outputs,
log levels, and request metrics for monitoring the API.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks request and write metrics for the candidate API.
    """

    def __init__(
        self,
        name: str = "talentdesk",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: $TALENTDESK_LOG_DIR or logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "requests_total": 0,
            "responses_by_status": {},
            "errors_by_type": {},
            "operations": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path(os.getenv("TALENTDESK_LOG_DIR", "logs"))
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"talentdesk_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def exception(self, message: str, exc: BaseException, **kwargs):
        """Log an error with the traceback of exc."""
        self._log(logging.ERROR, message, kwargs, exc_info=exc)

    def _log(self, level: int, message: str, context: dict, exc_info=None):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message, exc_info=exc_info)

    # Metric tracking methods

    def record_request(self, status_code: int):
        """Count a handled request by its response status."""
        self.metrics["requests_total"] += 1
        key = str(status_code)
        statuses = self.metrics["responses_by_status"]
        statuses[key] = statuses.get(key, 0) + 1

    def record_error(self, error_type: str):
        """Count an error by exception type."""
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def record_operation(self, operation: str):
        """Count a record store write (create, replace, delete)."""
        ops = self.metrics["operations"]
        ops[operation] = ops.get(operation, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics with the error rate filled in."""
        metrics_copy = self.metrics.copy()
        total = metrics_copy["requests_total"]
        failed = sum(
            count for status, count in metrics_copy["responses_by_status"].items()
            if status.startswith("5")
        )
        metrics_copy["server_error_rate"] = round(failed / total, 3) if total else 0.0
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== API Session Metrics ===")
        self.info(f"Requests: {metrics['requests_total']} "
                  f"({metrics['server_error_rate'] * 100:.1f}% server errors)")

        if metrics["responses_by_status"]:
            self.info("Responses by status:")
            for status, count in sorted(metrics["responses_by_status"].items()):
                self.info(f"  {status}: {count}")

        if metrics["operations"]:
            self.info("Write operations:")
            for operation, count in metrics["operations"].items():
                self.info(f"  {operation}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "talentdesk",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
