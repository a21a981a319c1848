import logging
import json
import uuid
import sys
from datetime import datetime, timezone

from flask import request, has_request_context, g


class JSONFormatter(logging.Formatter):
    """
    One JSON object per log line.
    Adds request id, route and customization session when inside a request.
    """
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "lineno": record.lineno,
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        if has_request_context():
            log_record["method"] = request.method
            log_record["path"] = request.path
            log_record["remote_ip"] = request.remote_addr
            if hasattr(g, "request_id"):
                log_record["request_id"] = g.request_id
            if getattr(g, "customization_id", None):
                log_record["customization_id"] = g.customization_id

        return json.dumps(log_record)


def setup_logger(app):
    """
    Send app, werkzeug and module loggers to stdout as JSON (container logging).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    app.logger.handlers.clear()
    app.logger.addHandler(handler)
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = False

    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.handlers = [handler]
    werkzeug_logger.propagate = False

    # Module loggers (services.*, utils.*) propagate to root
    root = logging.getLogger()
    if not any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(logging.INFO)

    # Under Gunicorn, reuse its handlers and level
    gunicorn_logger = logging.getLogger('gunicorn.error')
    if gunicorn_logger.handlers:
        app.logger.handlers = gunicorn_logger.handlers
        app.logger.setLevel(gunicorn_logger.level)

    @app.before_request
    def add_request_id():
        g.request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))

    @app.after_request
    def echo_request_id(response):
        if hasattr(g, "request_id"):
            response.headers["X-Request-Id"] = g.request_id
        return response

    app.logger.info("Logger setup complete. JSON formatted logs enabled.")
