"""Logging setup.

Production writes one JSON object per line; everywhere else gets plain text.
Every record carries the id of the HTTP request it was emitted under ("-"
outside a request), set by ``RequestIdMiddleware``.
"""
import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger import jsonlogger

from claimflow.core.config import Settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s [%(request_id)s] %(message)s"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(settings: Settings) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    if settings.APP_ENV == "production":
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                LOG_FORMAT.replace("[%(request_id)s] ", "%(request_id)s "),
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.root.handlers = [handler]
    logging.root.setLevel(logging.INFO)
    # passlib probes bcrypt.__about__ and warns on every hash with bcrypt>=4
    logging.getLogger("passlib").setLevel(logging.ERROR)
