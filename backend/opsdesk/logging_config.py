"""
Logging setup — console plus rotating files under LOG_DIR.

    server.log    every record
    payments.log  gateway, orchestrator and webhook traffic
    errors.log    ERROR and above
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from opsdesk.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)8s | %(name)s : %(message)s"

PAYMENT_LOGGERS = ("opsdesk.payments", "opsdesk.gateways", "opsdesk.webhooks")

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Attach handlers to the `opsdesk` logger tree. Safe to call twice."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_dir = settings.LOG_DIR
    os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger("opsdesk")
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))

    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    root.addHandler(ch)

    fh = RotatingFileHandler(
        os.path.join(log_dir, "server.log"), maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    fh.setFormatter(fmt)
    root.addHandler(fh)

    eh = RotatingFileHandler(
        os.path.join(log_dir, "errors.log"), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    eh.setLevel(logging.ERROR)
    eh.setFormatter(fmt)
    root.addHandler(eh)

    ph = RotatingFileHandler(
        os.path.join(log_dir, "payments.log"), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    ph.setFormatter(fmt)
    for name in PAYMENT_LOGGERS:
        logging.getLogger(name).addHandler(ph)

    _configured = True
