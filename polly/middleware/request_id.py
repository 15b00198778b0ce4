import logging
import uuid

from flask import g, has_request_context, request
from flask.logging import default_handler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the current request id ("-" outside requests)."""

    def filter(self, record):
        record.request_id = g.get("request_id", "-") if has_request_context() else "-"
        return True


_request_id_filter = RequestIdFilter()


def configure_logging(app):
    # app.logger is the "polly" logger, so module loggers under polly.* reach it.
    default_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    default_handler.addFilter(_request_id_filter)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))


def init_request_id(app):
    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):
        if hasattr(g, "request_id"):
            response.headers["X-Request-Id"] = g.request_id
        return response
