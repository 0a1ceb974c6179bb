"""
Structured logging configuration.

Called once from create_app() and once from worker.py (the RQ worker entry
point). Supports text (human-readable) and JSON formats via LOG_FORMAT env
var. LOG_LEVEL defaults to INFO.

Lead-tree context passed through ``extra=`` (lead_id, user_id, hash, source)
is carried into JSON output so log aggregators can filter on it.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone


# Attributes copied from LogRecord.__dict__ into JSON output when present
CONTEXT_FIELDS = ('lead_id', 'parent_id', 'user_id', 'hash', 'source', 'job_id')


class JSONFormatter(logging.Formatter):
    """Single-line JSON log formatter for production log aggregators."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


# Third-party loggers that are noisy at INFO
_NOISY_LOGGERS = [
    'urllib3',
    'rq.worker',
    'rq.queue',
    'sqlalchemy.engine',
    'werkzeug',
]


def configure_logging(app=None):
    """
    Set up root logger with format/level from env vars.

    Environment variables:
        LOG_LEVEL  — Python log level name (default: INFO)
        LOG_FORMAT — "text" (default) or "json"
        LOG_SQL    — "1" keeps SQLAlchemy statement logging at INFO
    """
    level_name = os.getenv('LOG_LEVEL', 'INFO').upper()
    level = getattr(logging, level_name, logging.INFO)

    log_format = os.getenv('LOG_FORMAT', 'text').lower()

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any existing handlers to avoid duplicates on re-init
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if log_format == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '[%(asctime)s] %(levelname)s %(name)s — %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))

    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if os.getenv('LOG_SQL', '') == '1':
        logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO)

    if app is not None:
        app.logger.setLevel(level)
