"""Logging configuration for the catalog admin backend."""
import logging
import logging.handlers
import os
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
MAX_LOG_BYTES = 10485760  # 10MB


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
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=10)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_app_logging(app, log_path=None, to_files=True):
    """Setup application-wide logging.

    Handlers hang off the package logger, so the Flask app logger
    (``catalog_admin.app``) and every service module share them. Must run
    before ``app.logger`` is first touched or Flask installs its default
    handler as well.
    """
    level = logging.DEBUG if app.debug else logging.INFO
    text_formatter = logging.Formatter(LOG_FORMAT)

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(text_formatter)
    handlers.append(console_handler)

    if to_files and log_path:
        os.makedirs(log_path, exist_ok=True)
        handlers.append(_rotating_handler(os.path.join(log_path, 'app.log'), logging.INFO, text_formatter))
        handlers.append(_rotating_handler(os.path.join(log_path, 'app.json.log'), logging.INFO, CustomJsonFormatter()))
        handlers.append(_rotating_handler(os.path.join(log_path, 'errors.log'), logging.ERROR, text_formatter))

    package_logger = logging.getLogger('catalog_admin')
    package_logger.handlers = []
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    app.logger.info('Application logging configured')
