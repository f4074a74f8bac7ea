"""Logging setup: stdout handler with the request correlation id on every line."""

import logging
import sys

from approvals.core.config import get_settings
from approvals.shared.context import get_correlation_id

LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the correlation id of the request being served.

    Records emitted outside a request (startup, seeding) get ``-``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


def setup_logging() -> None:
    """Install the stdout handler on the root logger.

    DEBUG when ``settings.debug`` is set, INFO otherwise. Calling it again
    replaces the previous handler instead of stacking a second one.
    """
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        handlers=[handler],
        force=True,
    )
    # Statement echo belongs to the SQLAlchemy instrumentation, not the log.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
