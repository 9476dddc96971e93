"""
Opsdesk Payments — development launcher.

Defaults come from Settings (.env), flags override them:
    python run.py
    python run.py --port 9000 --reload
    python run.py --sandbox
"""
import argparse
import logging
import os

import uvicorn

from opsdesk.config import get_settings
from opsdesk.logging_config import setup_logging

logger = logging.getLogger("opsdesk.server")


def parse_args(settings):
    parser = argparse.ArgumentParser(description=f"{settings.APP_NAME} server")
    parser.add_argument("--host", default=os.getenv("OPSDESK_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("OPSDESK_PORT", "8000")))
    parser.add_argument("--reload", action="store_true", default=settings.DEBUG,
                        help="Restart on code changes (on by default when DEBUG)")
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--sandbox", action="store_true",
                        help="Use sandbox gateway credentials and hosts")
    return parser.parse_args()


def main():
    settings = get_settings()
    args = parse_args(settings)

    if args.sandbox:
        # Read by Settings in the server process, including reload workers
        os.environ["GATEWAY_SANDBOX"] = "true"

    setup_logging(settings.LOG_LEVEL)
    logger.info(
        "Starting %s on http://%s:%s (docs at /docs, webhook at /api/payments/webhook, sandbox=%s)",
        settings.APP_NAME, args.host, args.port, args.sandbox or settings.GATEWAY_SANDBOX,
    )

    uvicorn.run(
        "opsdesk.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
