"""
Option Service — Read/write access to the `options` key/value table.
"""
import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from opsdesk.database import session_scope
from opsdesk.exceptions import ConfigurationError
from opsdesk.models.option import Option

logger = logging.getLogger("opsdesk.options")

ACTIVE_PAYMENT_GATEWAY = "activePaymentGateway"
PAYMENT_LINK_ID_PREFIX = "paymentLinkIdPrefix"
PAYMENT_LINK_NUMBER = "paymentLinkNumber"
CURRENT_FINANCIAL_YEAR = "currentFinancialYear"
CASHFREE_LINK_STATUS_MAP = "cashfreeLinkStatusMap"

DEFAULT_OPTIONS = {
    PAYMENT_LINK_NUMBER: "0",
    ACTIVE_PAYMENT_GATEWAY: "cashfree",
    CASHFREE_LINK_STATUS_MAP: json.dumps(
        {"PAID": "1", "PARTIALLY_PAID": "4", "EXPIRED": "2", "CANCELLED": "5"}
    ),
}


class OptionService:
    """Business configuration stored in the database."""

    @staticmethod
    def get(key: str, db: Optional[Session] = None) -> Optional[str]:
        """Return the raw option value, or None if the key is absent."""
        if db is not None:
            row = db.query(Option).filter(Option.option_key == key).first()
            return row.option_value if row else None

        with session_scope() as session:
            row = session.query(Option).filter(Option.option_key == key).first()
            return row.option_value if row else None

    @staticmethod
    def require(key: str, db: Optional[Session] = None) -> str:
        """Like get(), but a missing or empty value is a ConfigurationError."""
        value = OptionService.get(key, db)
        if value is None or str(value).strip() == "":
            raise ConfigurationError(f"Option '{key}' is not configured")
        return value

    @staticmethod
    def get_json(key: str, db: Optional[Session] = None) -> Any:
        """Parse a JSON-valued option. Missing or malformed → ConfigurationError."""
        raw = OptionService.require(key, db)
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Option '{key}' is not valid JSON")

    @staticmethod
    def set(key: str, value: Any, db: Optional[Session] = None) -> None:
        """Insert or update an option. Dicts and lists are stored as JSON."""
        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        def _write(session: Session):
            row = session.query(Option).filter(Option.option_key == key).first()
            if row:
                row.option_value = str(value)
            else:
                session.add(Option(option_key=key, option_value=str(value)))

        if db is not None:
            _write(db)
            db.flush()
            return

        with session_scope() as session:
            _write(session)

    @staticmethod
    def seed_defaults() -> None:
        """Insert missing default options. Existing values are left alone."""
        with session_scope() as session:
            existing = {
                k for (k,) in session.query(Option.option_key)
                .filter(Option.option_key.in_(DEFAULT_OPTIONS.keys())).all()
            }
            for key, value in DEFAULT_OPTIONS.items():
                if key not in existing:
                    session.add(Option(option_key=key, option_value=value))
                    logger.info("Seeded default option %s", key)
