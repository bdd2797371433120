"""Logging configuration for the sync pipelines and their entry points."""
import logging
import logging.handlers
import os
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging."""

    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno


def _rotating_handler(path, level, formatter):
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10485760,  # 10MB
        backupCount=10
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_path=None, level="INFO", logger_name="catalog_sync"):
    """
    Setup logging for the sync package.

    Console output is always installed. When log_path is given, a text log,
    a JSON log and an error-only log are written there with rotation.

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(logger_name)
    logger.handlers = []
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False

    text_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(text_formatter)
    logger.addHandler(console_handler)

    if log_path:
        os.makedirs(log_path, exist_ok=True)
        logger.addHandler(_rotating_handler(
            os.path.join(log_path, 'sync.log'), logging.INFO, text_formatter
        ))
        logger.addHandler(_rotating_handler(
            os.path.join(log_path, 'sync.json.log'), logging.INFO, CustomJsonFormatter()
        ))
        logger.addHandler(_rotating_handler(
            os.path.join(log_path, 'errors.log'), logging.ERROR, text_formatter
        ))

    logger.info('Sync logging configured')
    return logger


def setup_app_logging(app, log_path=None, level="INFO"):
    """Attach the sync handlers to a Flask application's logger."""
    package_logger = setup_logging(log_path, level)
    app.logger.handlers = list(package_logger.handlers)
    app.logger.setLevel(package_logger.level)
    return app.logger
