"""
Payment Service — Payment link and payout orchestration.

Flow for a payment link:
    contact lookup → reference ID → active gateway → gateway call
    → persist PaymentLink (CREATED) → WhatsApp / email (best effort)
"""
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from opsdesk.config import get_settings
from opsdesk.database import session_scope
from opsdesk.exceptions import ConfigurationError, ValidationError
from opsdesk.gateways import PAYOUT_TYPES, PaymentGateway, get_gateway
from opsdesk.models.contact import (
    Contact, ContactInformation, CATEGORY_PHONE, CATEGORY_EMAIL, TYPE_PRIMARY,
)
from opsdesk.models.payment_link import PaymentLink
from opsdesk.schemas.schemas import (
    BankAccountDetails, CardDetails, CustomerDetails, LinkRequest, LinkResult, PayoutRequest,
)
from opsdesk.services.notification_service import NotificationService
from opsdesk.services.option_service import OptionService, ACTIVE_PAYMENT_GATEWAY
from opsdesk.services.sequence_service import SequenceService

logger = logging.getLogger("opsdesk.payments")


class PaymentService:
    """Gateway-agnostic payment link and payout creation."""

    def __init__(self, sandbox: Optional[bool] = None, transport: Optional[httpx.BaseTransport] = None):
        self.settings = get_settings()
        self.sandbox = self.settings.GATEWAY_SANDBOX if sandbox is None else sandbox
        self.transport = transport

    # ─── Public API ──────────────────────────────────────────────────

    def create_payment_link(self, link_config: Dict[str, Any], contact_id: int, link_type: str):
        """Create, persist and announce a payment link.

        Args:
            link_config: {amount, linkExpiryTime, linkPurpose, linkNotify}.
            contact_id: Customer the link is for.
            link_type: Business category selecting the reference prefix.

        Returns:
            LinkResult on success, False on any configuration or gateway failure.

        Raises:
            ValidationError: unknown contact or missing name/phone.
        """
        customer = self._get_customer(contact_id, require_phone=True)
        notify = bool(link_config.get("linkNotify", False))

        try:
            reference_id = SequenceService.allocate(link_type)
            gateway = self._setup()

            request = LinkRequest(
                link_id_formatted=reference_id,
                amount=link_config["amount"],
                currency=self.settings.DEFAULT_CURRENCY,
                expiry=link_config.get("linkExpiryTime"),
                purpose=link_config.get("linkPurpose") or "",
                notify=notify,
                customer=customer,
            )

            result = gateway.create_payment_link(request)
            if result is False:
                logger.error("Gateway %s could not create link %s", gateway.name, reference_id)
                return False

            self._store_link(result, contact_id, notify)
        except ConfigurationError as e:
            logger.error("Error creating payment link: %s", e)
            return False
        except (KeyError, SchemaValidationError) as e:
            logger.error("Invalid payment link config %s: %s", link_config, e)
            return False
        except Exception:
            logger.exception("Error creating payment link for contact %s", contact_id)
            return False

        self._notify(customer, result, gateway)
        return result

    def create_payout_link(self, link_config: Dict[str, Any], contact_id: int, link_type: str):
        """Create a payout through the active gateway.

        Args:
            link_config: {amount, linkPurpose, type, description, upiId?, bankDetails?, cardDetails?}.

        Returns:
            The provider's raw response, or False. Payouts are not persisted.

        Raises:
            ValidationError: unknown payout type, missing fund account details or unknown contact.
        """
        payout_type = link_config.get("type")
        fund_details = self._fund_details(payout_type, link_config)
        customer = self._get_customer(contact_id, require_phone=False)

        try:
            reference_id = SequenceService.allocate(link_type)
            gateway = self._setup()

            request = PayoutRequest(
                link_id_formatted=reference_id,
                amount=link_config["amount"],
                currency=self.settings.DEFAULT_CURRENCY,
                purpose=link_config.get("linkPurpose") or "payout",
                description=link_config.get("description") or "",
                customer=customer,
                **fund_details,
            )

            response = gateway.create_payout_link(request, payout_type)
            if response is False:
                logger.error("Gateway %s could not create payout %s", gateway.name, reference_id)
            return response
        except ConfigurationError as e:
            logger.error("Error creating payout link: %s", e)
            return False
        except (KeyError, SchemaValidationError) as e:
            logger.error("Invalid payout config: %s", e)
            return False
        except Exception:
            logger.exception("Error creating payout link for contact %s", contact_id)
            return False

    @staticmethod
    def get_payment_types() -> Dict[str, str]:
        """linkType → prefix map for client-side display."""
        return SequenceService.get_prefixes()

    @staticmethod
    def get_payment_link(db: Session, link_id_formatted: str) -> Optional[PaymentLink]:
        return db.query(PaymentLink).filter(PaymentLink.link_id_formatted == link_id_formatted).first()

    # ─── Internals ───────────────────────────────────────────────────

    def _setup(self) -> PaymentGateway:
        """Resolve the active gateway. Read fresh on every call."""
        name = OptionService.require(ACTIVE_PAYMENT_GATEWAY)
        return get_gateway(name, sandbox=self.sandbox, transport=self.transport)

    @staticmethod
    def _get_customer(contact_id: int, require_phone: bool) -> CustomerDetails:
        with session_scope() as db:
            contact = db.query(Contact).filter(Contact.id == contact_id).first()
            if not contact:
                raise ValidationError(f"Contact {contact_id} not found")

            name = contact.full_name
            if not name:
                raise ValidationError(f"Contact {contact_id} has no name")

            infos = (
                db.query(ContactInformation)
                .filter(
                    ContactInformation.contact_id == contact_id,
                    ContactInformation.info_type == TYPE_PRIMARY,
                    ContactInformation.is_active.is_(True),
                    ContactInformation.category.in_([CATEGORY_PHONE, CATEGORY_EMAIL]),
                )
                .order_by(ContactInformation.id.asc())
                .all()
            )

            phone = next((i.value for i in infos if i.category == CATEGORY_PHONE), None)
            email = next((i.value for i in infos if i.category == CATEGORY_EMAIL), None)

        if require_phone and not phone:
            raise ValidationError(f"Contact {contact_id} has no active phone number")

        return CustomerDetails(name=name, phone=phone, email=email)

    @staticmethod
    def _fund_details(payout_type: Optional[str], link_config: Dict[str, Any]) -> Dict[str, Any]:
        if payout_type not in PAYOUT_TYPES:
            raise ValidationError(f"Payout type must be one of {', '.join(PAYOUT_TYPES)}")

        try:
            if payout_type == "upi":
                if not link_config.get("upiId"):
                    raise ValidationError("upiId is required for UPI payouts")
                return {"upi_id": link_config["upiId"]}
            if payout_type == "bank":
                if not link_config.get("bankDetails"):
                    raise ValidationError("bankDetails are required for bank payouts")
                return {"bank_details": BankAccountDetails.model_validate(link_config["bankDetails"])}
            if not link_config.get("cardDetails"):
                raise ValidationError("cardDetails are required for card payouts")
            return {"card_details": CardDetails.model_validate(link_config["cardDetails"])}
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid {payout_type} details: {e.errors()[0]['msg']}")

    def _store_link(self, result: LinkResult, contact_id: int, notify: bool) -> None:
        with session_scope() as db:
            db.add(PaymentLink(
                link_pg_id=result.link_id,
                link_id_formatted=result.link_id_formatted,
                link_gateway=result.link_gateway,
                link_contact_id=contact_id,
                link_url=result.link_url,
                link_qr=result.link_qr,
                link_purpose=result.link_purpose,
                link_amount=result.link_amount,
                link_currency=result.link_currency,
                link_expiry=result.link_expiry,
                link_status=self.settings.LINK_STATUS_CREATED,
                link_notification=notify,
            ))
        logger.info("Stored payment link %s (%s)", result.link_id_formatted, result.link_id)

    def _notify(self, customer: CustomerDetails, result: LinkResult, gateway: PaymentGateway) -> None:
        """WhatsApp always, email when the gateway does not mail the customer itself."""
        amount = f"{result.link_amount:.2f}"
        params = [
            customer.name,
            result.link_purpose,
            amount,
            result.link_expiry or "",
            result.link_url,
            result.link_url.rstrip("/").split("/")[-1],
        ]

        try:
            sent = NotificationService.send_whatsapp_template(
                customer.phone, self.settings.WHATSAPP_PAYMENT_LINK_TEMPLATE, params
            )
            if not sent.get("success"):
                logger.warning("WhatsApp notification for %s failed", result.link_id_formatted)

            if customer.email and not gateway.notifies_by_email:
                body = (
                    f"Dear {customer.name},\n\n"
                    f"Please pay {result.link_currency} {amount} for {result.link_purpose}.\n"
                    f"Payment link: {result.link_url}\n"
                )
                if result.link_expiry:
                    body += f"This link expires on {result.link_expiry}.\n"
                sent = NotificationService.send_email(
                    customer.email, f"Payment request {result.link_id_formatted}", body
                )
                if not sent.get("success"):
                    logger.warning("Email notification for %s failed", result.link_id_formatted)
        except Exception:
            logger.exception("Notification for %s failed", result.link_id_formatted)
