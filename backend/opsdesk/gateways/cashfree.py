"""
Cashfree adapter — Payment Links (PG API) and Payouts (standard transfer v2).
Amounts are sent and returned in major currency units.
"""
from typing import Dict, Any

from opsdesk.gateways.base import PaymentGateway
from opsdesk.schemas.schemas import LinkRequest, LinkResult, PayoutRequest

DEFAULT_PG_API_VERSION = "2023-08-01"
PAYOUT_API_VERSION = "2024-01-01"

TRANSFER_MODES = {"upi": "upi", "bank": "banktransfer", "cards": "card"}


class CashfreeGateway(PaymentGateway):
    name = "Cashfree"
    notifies_by_email = True    # link_notify.send_email

    @property
    def pg_url(self) -> str:
        return self.settings.CASHFREE_PG_SANDBOX_URL if self.sandbox else self.settings.CASHFREE_PG_URL

    @property
    def payout_url(self) -> str:
        return self.settings.CASHFREE_PAYOUT_SANDBOX_URL if self.sandbox else self.settings.CASHFREE_PAYOUT_URL

    def _headers(self, api_version: str) -> Dict[str, str]:
        return {
            "x-client-id": self.token,
            "x-client-secret": self.secret,
            "x-api-version": api_version,
            "Content-Type": "application/json",
        }

    def _create_payment_link(self, request: LinkRequest) -> LinkResult:
        customer = {"customer_name": request.customer.name, "customer_phone": request.customer.phone}
        if request.customer.email:
            customer["customer_email"] = request.customer.email

        payload = {
            "link_id": request.link_id_formatted,
            "link_amount": request.amount,
            "link_currency": request.currency,
            "link_purpose": request.purpose,
            "customer_details": customer,
            "link_partial_payments": request.partial_payments,
            "link_notify": {"send_sms": request.notify, "send_email": request.notify},
            "link_auto_reminders": request.auto_reminders,
            "link_notes": request.notes,
            "link_meta": request.meta,
        }
        if request.partial_payments:
            payload["link_minimum_partial_amount"] = request.partial_amount
        if request.expiry:
            payload["link_expiry_time"] = request.expiry

        data = self._post(
            f"{self.pg_url}/links", payload,
            headers=self._headers(self.api_version or DEFAULT_PG_API_VERSION),
        )

        return LinkResult(
            link_id=str(data["cf_link_id"]),
            link_id_formatted=data.get("link_id", request.link_id_formatted),
            link_gateway=self.pg_id,
            link_url=data["link_url"],
            link_qr=data.get("link_qrcode") or "",
            link_purpose=data.get("link_purpose", request.purpose),
            link_amount=float(data.get("link_amount", request.amount)),
            link_currency=data.get("link_currency", request.currency),
            link_expiry=data.get("link_expiry_time", request.expiry),
        )

    def _create_payout_link(self, request: PayoutRequest, payout_type: str) -> Dict[str, Any]:
        instrument: Dict[str, Any] = {}
        if payout_type == "upi":
            instrument["vpa"] = request.upi_id
        elif payout_type == "bank":
            instrument["bank_account_number"] = request.bank_details.account_number
            instrument["bank_ifsc"] = request.bank_details.ifsc_code
        elif payout_type == "cards":
            instrument["card_details"] = {
                "card_number": request.card_details.card_number,
                "card_network_type": request.card_details.card_type.upper(),
            }

        payload = {
            "transfer_id": request.link_id_formatted,
            "transfer_amount": request.amount,
            "transfer_currency": request.currency,
            "transfer_mode": TRANSFER_MODES[payout_type],
            "transfer_remarks": request.description or request.purpose,
            "beneficiary_details": {
                "beneficiary_name": request.customer.name,
                "beneficiary_instrument_details": instrument,
            },
        }
        # Without a fund source Cashfree debits the account's default payout balance
        if self.fund_source_id:
            payload["fundsource_id"] = self.fund_source_id

        return self._post(f"{self.payout_url}/transfers", payload, headers=self._headers(PAYOUT_API_VERSION))
