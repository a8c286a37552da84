"""
Structured logging for domain resolution.

Provides centralized logging with console and file outputs, log levels,
and per-service metrics for monitoring naming service health.
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
    Tracks call metrics per naming service.
    """

    def __init__(
        self,
        name: str = "resolution",
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
            enable_console: Output logs to stderr
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = {
            "backend_calls": 0,
            "backend_successes": 0,
            "backend_failures": 0,
            "errors_by_type": {},
            "service_success_rate": {},
        }
        self._metrics_lock = threading.Lock()

        if enable_console:
            # stderr keeps CLI output on stdout machine-readable
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

            log_file = log_dir / f"resolution_{datetime.now().strftime('%Y%m%d')}.log"
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

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods (called from asyncio.to_thread workers)

    def record_backend_call(self, service: str):
        """Record an outbound call to a naming service."""
        with self._metrics_lock:
            self.metrics["backend_calls"] += 1
            if service not in self.metrics["service_success_rate"]:
                self.metrics["service_success_rate"][service] = {
                    "calls": 0,
                    "successes": 0
                }
            self.metrics["service_success_rate"][service]["calls"] += 1

    def record_backend_success(self, service: str):
        with self._metrics_lock:
            self.metrics["backend_successes"] += 1
            if service in self.metrics["service_success_rate"]:
                self.metrics["service_success_rate"][service]["successes"] += 1

    def record_backend_failure(self, service: str, error_type: str):
        """Record a failed call, keyed by error type."""
        with self._metrics_lock:
            self.metrics["backend_failures"] += 1

            if error_type not in self.metrics["errors_by_type"]:
                self.metrics["errors_by_type"][error_type] = 0
            self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return a snapshot of current metrics with per-service success rates."""
        with self._metrics_lock:
            metrics_copy = dict(self.metrics)
            metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
            metrics_copy["service_success_rate"] = {
                service: dict(stats) for service, stats in self.metrics["service_success_rate"].items()
            }
        for service, stats in metrics_copy["service_success_rate"].items():
            if stats["calls"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["calls"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_calls = metrics["backend_calls"]
        total_successes = metrics["backend_successes"]
        overall_rate = 0
        if total_calls > 0:
            overall_rate = round(total_successes / total_calls * 100, 1)

        self.info("=== Naming Service Metrics ===")
        self.info(f"Calls: {total_successes}/{total_calls} ({overall_rate}% success)")

        if metrics["service_success_rate"]:
            self.info("Service Success Rates:")
            for service, stats in metrics["service_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {service}: {stats['successes']}/{stats['calls']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "resolution",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    A library import must not create a logs/ directory, so file output
    is off unless enable_file=True is passed explicitly.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        kwargs.setdefault("enable_file", False)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
