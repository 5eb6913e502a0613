import logging
import logging.config
import os
import time
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "automata_engine"
PERFORMANCE_LOGGER = f"{ROOT_LOGGER}.performance"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_performance: bool = False,
) -> None:
    """
    Set up logging for the automaton engine.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        enable_console: Whether to log to stdout
        enable_performance: Whether to emit timing records at DEBUG level
    """
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "simple": {"format": "%(levelname)s - %(name)s - %(message)s"},
        },
        "handlers": {},
        "loggers": {
            ROOT_LOGGER: {"level": log_level, "handlers": [], "propagate": False},
            PERFORMANCE_LOGGER: {
                "level": "DEBUG" if enable_performance else "INFO",
                "handlers": [],
                "propagate": True,
            },
        },
    }

    if enable_console:
        config["handlers"]["console"] = {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "simple",
            "stream": "ext://sys.stdout",
        }
        config["loggers"][ROOT_LOGGER]["handlers"].append("console")

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8",
        }
        config["loggers"][ROOT_LOGGER]["handlers"].append("file")

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """Return the engine logger for a module (typically ``__name__``)."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_performance_logger() -> logging.Logger:
    return logging.getLogger(PERFORMANCE_LOGGER)


class PerformanceTimer:
    """Context manager that logs how long an operation took."""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None):
        self.operation_name = operation_name
        self.logger = logger or get_performance_logger()
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time

        if exc_type is None:
            self.logger.debug(f"{self.operation_name} completed in {self.duration:.4f}s")
        else:
            self.logger.warning(
                f"{self.operation_name} failed after {self.duration:.4f}s: {exc_val}"
            )


def init_default_logging():
    """Configure logging from the environment, if the environment asks for it."""
    log_level = os.getenv("AUTOMATA_ENGINE_LOG_LEVEL")
    if not log_level:
        # Library default: stay silent unless the application configures logging.
        logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())
        return

    enable_perf = (
        os.getenv("AUTOMATA_ENGINE_ENABLE_PERFORMANCE_LOGGING", "false").lower() == "true"
    )
    setup_logging(log_level=log_level.upper(), enable_performance=enable_perf)


init_default_logging()
