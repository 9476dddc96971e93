"""
Webhook Service — Reconciles gateway status callbacks into PaymentLink rows.

Vendor statuses are mapped to canonical codes through the
cashfreeLinkStatusMap option. Statuses only move forward:

    CREATED < PARTIALLY_PAID < EXPIRED = CANCELLED < PAID

Events that would move a link backwards are logged and dropped.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from opsdesk.config import get_settings
from opsdesk.database import session_scope
from opsdesk.exceptions import ConfigurationError, ReconciliationMiss
from opsdesk.models.payment_link import PaymentLink
from opsdesk.services.option_service import OptionService, CASHFREE_LINK_STATUS_MAP

logger = logging.getLogger("opsdesk.webhooks")

PAYMENT_LINK_EVENT = "PAYMENT_LINK_EVENT"

STATUS_RANK = {
    "CREATED": 0,
    "PARTIALLY_PAID": 1,
    "EXPIRED": 2,
    "CANCELLED": 2,
    "PAID": 3,
}

TIMESTAMP_FIELDS = {
    "PAID": "link_paid_at",
    "PARTIALLY_PAID": "link_paid_at",
    "EXPIRED": "link_expired_at",
    "CANCELLED": "link_failed_at",
}

# Outcomes returned by handle_webhook()
IGNORED = "ignored"
INVALID = "invalid"
UNKNOWN_STATUS = "unknown_status"
UNKNOWN_LINK = "unknown_link"
DUPLICATE = "duplicate"
STALE = "stale"
UPDATED = "updated"
ERROR = "error"


def parse_event_time(value: Optional[str]) -> datetime:
    """ISO-8601 event time → naive UTC datetime. Falls back to now."""
    if value:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            return parsed.replace(microsecond=0)
        except ValueError:
            logger.warning("Unparsable event_time %r, using current time", value)
    return datetime.utcnow().replace(microsecond=0)


class WebhookService:
    """Applies PAYMENT_LINK_EVENT callbacks to stored links."""

    def __init__(self):
        self.settings = get_settings()

    def handle_webhook(self, event: Dict[str, Any]) -> str:
        """Reconcile one gateway callback. Never raises.

        Returns:
            One of the outcome constants; the HTTP layer answers 200 regardless.
        """
        if not isinstance(event, dict) or event.get("type") != PAYMENT_LINK_EVENT:
            logger.debug("Ignoring webhook of type %r", event.get("type") if isinstance(event, dict) else None)
            return IGNORED

        data = event.get("data") or {}
        if not isinstance(data, dict):
            logger.warning("Payment link event data is not an object: %r", data)
            return INVALID

        pg_link_id = data.get("cf_link_id")
        link_id_formatted = data.get("link_id")
        vendor_status = data.get("link_status")
        paid_amount = data.get("link_amount_paid")

        if pg_link_id in (None, "") or not link_id_formatted or not vendor_status:
            logger.warning("Malformed payment link event: %s", event)
            return INVALID

        try:
            status_map = self._status_map()
            code = self._canonical_code(vendor_status, status_map)
            if code is None:
                logger.warning(
                    "Unmapped link status %r for %s, event dropped", vendor_status, link_id_formatted
                )
                return UNKNOWN_STATUS

            status_name = self._status_name(code, status_map, preferred=vendor_status)
            if status_name is None:
                logger.warning("Status code %s has no canonical meaning, event dropped", code)
                return UNKNOWN_STATUS

            with session_scope() as db:
                link = self._find_link(db, str(pg_link_id), link_id_formatted)
                return self._apply(link, code, status_name, paid_amount, event.get("event_time"), status_map)
        except ReconciliationMiss as e:
            logger.warning("Reconciliation miss: %s", e)
            return UNKNOWN_LINK
        except ConfigurationError as e:
            logger.error("Cannot reconcile %s: %s", link_id_formatted, e)
            return ERROR
        except Exception:
            logger.exception("Error reconciling webhook for %s", link_id_formatted)
            return ERROR

    # ─── Internals ───────────────────────────────────────────────────

    @staticmethod
    def _status_map() -> Dict[str, str]:
        status_map = OptionService.get_json(CASHFREE_LINK_STATUS_MAP)
        if not isinstance(status_map, dict):
            raise ConfigurationError(f"Option '{CASHFREE_LINK_STATUS_MAP}' must be a JSON object")
        return status_map

    @staticmethod
    def _canonical_code(vendor_status: str, status_map: Dict[str, str]) -> Optional[int]:
        code = status_map.get(vendor_status)
        if code is None:
            return None
        try:
            return int(code)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Status map entry {vendor_status!r} is not numeric: {code!r}")

    def _status_name(self, code: int, status_map: Dict[str, str], preferred: str = "") -> Optional[str]:
        """Canonical status name for a code, using the configured map in reverse."""
        if code == self.settings.LINK_STATUS_CREATED:
            return "CREATED"
        if preferred in STATUS_RANK and str(status_map.get(preferred)) == str(code):
            return preferred
        for name in STATUS_RANK:
            if name in status_map and str(status_map[name]) == str(code):
                return name
        return None

    @staticmethod
    def _find_link(db: Session, pg_link_id: str, link_id_formatted: str) -> PaymentLink:
        link = (
            db.query(PaymentLink)
            .filter(
                PaymentLink.link_pg_id == pg_link_id,
                PaymentLink.link_id_formatted == link_id_formatted,
            )
            .first()
        )
        if link is None:
            raise ReconciliationMiss(f"No payment link ({pg_link_id}, {link_id_formatted})")
        return link

    def _apply(self, link: PaymentLink, code: int, status_name: str, paid_amount,
               event_time: Optional[str], status_map: Dict[str, str]) -> str:
        amount_paid = self._amount_paid(paid_amount, link.link_amount_paid or 0.0)

        if link.link_status == code:
            # Same status again: only a higher paid amount (another partial payment) is news
            if amount_paid > (link.link_amount_paid or 0.0):
                link.link_amount_paid = amount_paid
                logger.info("Payment link %s paid amount now %s", link.link_id_formatted, amount_paid)
                return UPDATED
            logger.info("Duplicate %s event for %s", status_name, link.link_id_formatted)
            return DUPLICATE

        current_name = self._status_name(link.link_status, status_map) or "CREATED"
        if STATUS_RANK[status_name] <= STATUS_RANK[current_name]:
            logger.warning(
                "Stale %s event for %s (currently %s), not applied",
                status_name, link.link_id_formatted, current_name,
            )
            return STALE

        field = TIMESTAMP_FIELDS[status_name]
        keep_paid_at = field == "link_paid_at" and link.link_paid_at is not None

        link.link_status = code
        link.link_amount_paid = amount_paid
        for other in set(TIMESTAMP_FIELDS.values()) - {field}:
            setattr(link, other, None)
        if not keep_paid_at:
            setattr(link, field, parse_event_time(event_time))

        logger.info(
            "Payment link %s moved %s -> %s", link.link_id_formatted, current_name, status_name
        )
        return UPDATED

    @staticmethod
    def _amount_paid(reported, current: float) -> float:
        """Paid amount never decreases; unusable values keep the stored one."""
        if reported is None:
            return current
        try:
            return max(float(reported), current)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric link_amount_paid %r", reported)
            return current
