"""Logging configuration for the ingest."""

import logging
import os
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

from ..config import Config, config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_formatter(settings: Config) -> logging.Formatter:
    """
    Pick the log formatter for the running environment.

    Inside Lambda, and whenever the environment is ``prod``, records are
    emitted as JSON so CloudWatch Logs Insights can query their fields.
    """
    if settings.environment == "prod" or "AWS_LAMBDA_FUNCTION_NAME" in os.environ:
        return jsonlogger.JsonFormatter(JSON_LOG_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the named ingest logger, attaching a stdout handler on first use."""
    logger = logging.getLogger(name or "price_ingest")
    if logger.handlers:
        return logger

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(config))
    logger.addHandler(handler)

    # The Lambda runtime installs its own root handler
    logger.propagate = False
    return logger
