"""
Centralized logging configuration for the auto-scheduling service.

This module provides standardized logging with timestamps, function names,
and appropriate log levels for all scheduler components.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional


class ScheduleSystemLogger:
    """
    Centralized logger for the auto-scheduling service.
    Provides consistent formatting and handling across all modules.
    """

    _loggers = {}
    _configured = False

    @classmethod
    def setup_logging(
        cls,
        log_level: Optional[str] = None,
        log_file: Optional[str] = None,
        console_output: bool = True
    ) -> None:
        """
        Configure the logging system for the entire application.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                Falls back to LOG_LEVEL, then INFO
            log_file: Optional log file path. Falls back to LOG_FILE; when
                neither is set no file handler is installed
            console_output: Whether to output logs to console
        """
        if cls._configured:
            return

        log_level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
        log_file = log_file or os.getenv("LOG_FILE")

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level))

        formatter = logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-25s | %(funcName)-20s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            console_handler.setLevel(getattr(logging, log_level))
            root_logger.addHandler(console_handler)

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)  # File gets all levels
            root_logger.addHandler(file_handler)

        # Firestore and gRPC are chatty at DEBUG
        logging.getLogger("google").setLevel(logging.WARNING)
        logging.getLogger("apscheduler").setLevel(logging.WARNING)

        cls._configured = True

        logger = cls.get_logger("logging_config")
        logger.info(f"Logging system configured - Level: {log_level}, File: {log_file}")

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get a logger for a specific module or component.

        Loggers are handed out without configuring anything; the entrypoint
        calls setup_logging once the environment (and .env file) is loaded.

        Args:
            name: Logger name (typically component name)

        Returns:
            Logger instance
        """
        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)

        return cls._loggers[name]


def get_engine_logger() -> logging.Logger:
    """Get logger for the matching engine."""
    return ScheduleSystemLogger.get_logger("scheduling_engine")


def get_firestore_logger() -> logging.Logger:
    """Get logger for Firestore reads and writes."""
    return ScheduleSystemLogger.get_logger("firestore_operations")


def get_controller_logger() -> logging.Logger:
    """Get logger for the run controller."""
    return ScheduleSystemLogger.get_logger("run_controller")


def get_main_logger() -> logging.Logger:
    """Get logger for main application."""
    return ScheduleSystemLogger.get_logger("main_app")


def log_scheduling_operation(
    logger: logging.Logger,
    operation: str,
    customer_id: Optional[str] = None,
    coach_id: Optional[str] = None,
    details: Optional[str] = None
) -> None:
    """
    Standardized logging for scheduling decisions.

    Args:
        logger: Logger instance to use
        operation: Type of operation (skip, conflict, created, write_failed, etc.)
        customer_id: Optional customer ID
        coach_id: Optional coach ID
        details: Additional details
    """
    message_parts = [f"SCHEDULING_{operation.upper()}"]

    if customer_id:
        message_parts.append(f"Customer: {customer_id}")

    if coach_id:
        message_parts.append(f"Coach: {coach_id}")

    if details:
        message_parts.append(f"Details: {details}")

    logger.info(" | ".join(message_parts))


def log_database_operation(
    logger: logging.Logger,
    operation: str,
    collection: str,
    success: bool,
    details: Optional[str] = None,
    error: Optional[Exception] = None
) -> None:
    """
    Standardized logging for Firestore operations.

    Args:
        logger: Logger instance to use
        operation: Database operation (QUERY, INSERT, GET, SET)
        collection: Firestore collection name
        success: Whether operation was successful
        details: Additional details
        error: Exception if operation failed
    """
    message_parts = [f"DB_{operation.upper()}", f"Collection: {collection}"]

    if details:
        message_parts.append(f"Details: {details}")

    message = " | ".join(message_parts)

    if success:
        logger.info(message)
    elif error:
        logger.error(f"{message} | Error: {error}")
    else:
        logger.error(message)
