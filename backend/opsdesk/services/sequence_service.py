"""
Sequence Service — Human-readable payment reference IDs.

Format: PREFIX-FY-NNNNNN, e.g. INV-2425-000042, where
- PREFIX comes from the paymentLinkIdPrefix map, keyed by link type
- FY is the currentFinancialYear option
- NNNNNN is paymentLinkNumber after increment, zero-padded to 6 digits
"""
import logging

from sqlalchemy import Integer, String, cast, update

from opsdesk.database import session_scope
from opsdesk.exceptions import ConfigurationError
from opsdesk.models.option import Option
from opsdesk.services.option_service import (
    OptionService,
    PAYMENT_LINK_ID_PREFIX,
    PAYMENT_LINK_NUMBER,
    CURRENT_FINANCIAL_YEAR,
)

logger = logging.getLogger("opsdesk.payments.sequence")

COUNTER_WIDTH = 6


class SequenceService:
    """Allocates reference IDs from a shared, atomically incremented counter."""

    @staticmethod
    def get_prefixes() -> dict:
        """Return the linkType → prefix map."""
        prefixes = OptionService.get_json(PAYMENT_LINK_ID_PREFIX)
        if not isinstance(prefixes, dict):
            raise ConfigurationError(f"Option '{PAYMENT_LINK_ID_PREFIX}' must be a JSON object")
        return prefixes

    @staticmethod
    def format_reference(prefix: str, financial_year: str, number: int) -> str:
        return f"{prefix}-{financial_year}-{str(number).zfill(COUNTER_WIDTH)}"

    @classmethod
    def allocate(cls, link_type: str) -> str:
        """Allocate the next reference ID for a link type.

        The counter is bumped with a single UPDATE and read back inside the
        same transaction, so concurrent callers never see the same value.
        The increment is committed here; a later gateway failure leaves a gap.

        Raises:
            ConfigurationError: prefix map, link type, financial year or
                counter option missing, or the counter is not an integer.
                Nothing is incremented in that case.
        """
        prefixes = cls.get_prefixes()
        prefix = prefixes.get(link_type)
        if not prefix:
            raise ConfigurationError(f"No payment link prefix configured for link type '{link_type}'")

        financial_year = OptionService.require(CURRENT_FINANCIAL_YEAR)
        cls.peek()

        with session_scope() as db:
            result = db.execute(
                update(Option)
                .where(Option.option_key == PAYMENT_LINK_NUMBER)
                .values(option_value=cast(cast(Option.option_value, Integer) + 1, String))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConfigurationError(f"Option '{PAYMENT_LINK_NUMBER}' is not configured")

            number = int(OptionService.require(PAYMENT_LINK_NUMBER, db))

        reference_id = cls.format_reference(prefix, financial_year, number)
        logger.info("Allocated reference %s for link type %s", reference_id, link_type)
        return reference_id

    @staticmethod
    def peek() -> int:
        """Last allocated counter value, without incrementing."""
        raw = OptionService.require(PAYMENT_LINK_NUMBER)
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"Option '{PAYMENT_LINK_NUMBER}' is not numeric: {raw!r}")
