"""
This module provides the logging setup shared by every part of the exporter.
It features `LoggerManager` for creating and caching logger instances with a
file handler and a console handler, and `JsonLogFormatter` for producing
structured JSON log files.

Console output is written to stderr: stdout is reserved for the exported
JSON Lines stream when no output file is given.
"""

import os
import sys
import logging
import json
from typing import Optional

from colorlog import ColoredFormatter


class LoggerManager:
    """
    A factory class for creating and managing singleton `logging.Logger` instances.

    For any unique logger name (optionally suffixed with a `run_id`) the same
    logger instance is returned, so handlers are attached only once.

    Key features of the configured loggers:
    - **Dual Output**: one handler writing to a log file and one writing to
      the console (stderr).
    - **Formatting**: console output is colored with `colorlog` unless
      disabled; file output is plain text or structured JSON
      (`JsonLogFormatter`).
    - **Path Handling**: the log file is taken from `log_file`, resolved
      through a `TaskPaths` object, or placed under the default `logs/`
      directory. Missing directories are created.
    - **No Duplicate Propagation**: `propagate = False` on every logger.
    """

    _loggers = {}
    _default_log_dir = "logs"

    @classmethod
    def get_logger(
        cls,
        name: str,
        log_file: Optional[str] = None,
        level: str = "INFO",
        use_json: bool = False,
        use_color: bool = True,
        task_paths: Optional[object] = None,
        run_id: Optional[str] = None,
    ) -> logging.Logger:
        """
        Retrieve or create a logger configured for console and file output.

        Args:
            name (str): A unique identifier (typically the module name).
            log_file (Optional[str]): Full path to a log file. Overrides
                task_paths if set.
            level (str): Logging level threshold ("DEBUG", "INFO", etc.).
            use_json (bool): If True, format file logs as JSON.
            use_color (bool): If True, enable colored console output.
            task_paths (Optional[object]): A TaskPaths instance used to
                resolve the log file path.
            run_id (Optional[str]): Optional run identifier used to create
                per-run logs.

        Returns:
            logging.Logger: A fully configured logger instance.
        """

        logger_key = f"{name}-{run_id}" if run_id else name
        if logger_key in cls._loggers:
            return cls._loggers[logger_key]

        logger = logging.getLogger(logger_key)
        logger.setLevel(level.upper())
        logger.propagate = False

        if not log_file and task_paths:
            log_file = task_paths.get_log_path(run_id=run_id, name=name)

        log_dir = os.path.dirname(log_file) if log_file else cls._default_log_dir
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        if not log_file:
            log_file = os.path.join(log_dir, f"{name}.log")

        logger.addHandler(cls._setup_file_handler(log_file, level, use_json))
        logger.addHandler(cls._setup_console_handler(level, use_color))

        cls._loggers[logger_key] = logger
        return logger

    @classmethod
    def set_level(cls, level: str) -> None:
        """Apply a level to every logger created so far and to their handlers."""
        for logger in cls._loggers.values():
            logger.setLevel(level.upper())
            for handler in logger.handlers:
                handler.setLevel(level.upper())

    @staticmethod
    def _setup_file_handler(
        filepath: str, level: str, use_json: bool
    ) -> logging.Handler:
        handler = logging.FileHandler(filepath, encoding="utf-8")
        handler.setLevel(level.upper())
        handler.setFormatter(LoggerManager._get_formatter(use_json=use_json, color=False))
        return handler

    @staticmethod
    def _setup_console_handler(level: str, use_color: bool) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level.upper())
        handler.setFormatter(LoggerManager._get_formatter(use_json=False, color=use_color))
        return handler

    @staticmethod
    def _get_formatter(
        use_json: bool = False, color: bool = False
    ) -> logging.Formatter:
        """
        Returns a log formatter object based on configuration.

        Args:
            use_json (bool): If True, returns a JSON formatter.
            color (bool): If True, returns a colorlog formatter.

        Returns:
            logging.Formatter: A formatter instance.
        """
        if use_json:
            return JsonLogFormatter()

        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"

        if color:
            return ColoredFormatter(
                fmt="%(log_color)s" + fmt,
                datefmt=datefmt,
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'bold_red',
                },
            )
        return logging.Formatter(fmt, datefmt)


class JsonLogFormatter(logging.Formatter):
    """
    A formatter that outputs one JSON object per log record.

    Example Output:
        {
            "timestamp": "2026-10-19 13:12:01",
            "level": "INFO",
            "logger": "dcexport.enrichment.enrichment_service",
            "message": "cache.hit",
            "capture_id": "510d47e2-..."
        }

    Supports extra data via `extra={"extra_data": {...}}` in logging calls.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra_data"):
            log_record.update(record.extra_data)
        return json.dumps(log_record)
