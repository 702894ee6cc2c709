"""
Structured logging system for chemnames.

Provides centralized logging with console and optional file output,
plus metrics tracking for monitoring how name lookups behave.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring lookup and cache behaviour.
    """

    def __init__(
        self,
        name: str = "chemnames",
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
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers

        # Workers record metrics concurrently
        self._metrics_lock = threading.Lock()
        self.metrics = {
            "lookups_attempted": 0,
            "lookups_successful": 0,
            "lookups_failed": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "dedup_hits": 0,
            "errors_by_type": {},
        }

        if enable_console:
            # stderr keeps CLI output on stdout clean
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"chemnames_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(threadName)s | %(message)s',
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

    def exception(self, message: str, **kwargs):
        """Log error message with the active traceback attached."""
        self._log(logging.ERROR, message, kwargs, exc_info=True)

    def _log(self, level: int, message: str, context: dict, exc_info: bool = False):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message, exc_info=exc_info)

    # Metric tracking methods

    def record_lookup_attempt(self):
        """Increment the outbound lookup counter."""
        with self._metrics_lock:
            self.metrics["lookups_attempted"] += 1

    def record_lookup_success(self):
        """Record a lookup that produced a display name."""
        with self._metrics_lock:
            self.metrics["lookups_successful"] += 1

    def record_lookup_failure(self, error_type: str):
        """Record a failed lookup attempt."""
        with self._metrics_lock:
            self.metrics["lookups_failed"] += 1
            if error_type not in self.metrics["errors_by_type"]:
                self.metrics["errors_by_type"][error_type] = 0
            self.metrics["errors_by_type"][error_type] += 1

    def record_cache_hit(self):
        with self._metrics_lock:
            self.metrics["cache_hits"] += 1

    def record_cache_miss(self):
        with self._metrics_lock:
            self.metrics["cache_misses"] += 1

    def record_dedup_hit(self):
        """Record a request that joined an in-flight lookup."""
        with self._metrics_lock:
            self.metrics["dedup_hits"] += 1

    def get_metrics(self) -> dict:
        """Return current metrics, including the derived success rate."""
        with self._metrics_lock:
            metrics_copy = dict(self.metrics)
            metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        attempts = metrics_copy["lookups_attempted"]
        metrics_copy["success_rate"] = (
            round(metrics_copy["lookups_successful"] / attempts, 3) if attempts else 0.0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Name Resolution Metrics ===")
        self.info(
            f"Lookups: {metrics['lookups_successful']}/{metrics['lookups_attempted']} "
            f"({metrics['success_rate'] * 100:.1f}% success)"
        )
        self.info(
            f"Cache: {metrics['cache_hits']} hits, {metrics['cache_misses']} misses, "
            f"{metrics['dedup_hits']} deduplicated"
        )

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "chemnames",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    File output is off unless a log_dir is passed in, so importing the
    package never creates directories.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        kwargs.setdefault("enable_file", kwargs.get("log_dir") is not None)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
