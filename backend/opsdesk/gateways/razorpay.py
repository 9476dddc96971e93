"""
Razorpay adapter — Payment Links and composite Payouts.
Razorpay works in minor units (paise); results are converted back to major units.
"""
from datetime import datetime
from typing import Dict, Any

from opsdesk.exceptions import ConfigurationError
from opsdesk.gateways.base import PaymentGateway
from opsdesk.schemas.schemas import LinkRequest, LinkResult, PayoutRequest

PAYOUT_MODES = {"upi": "UPI", "bank": "IMPS", "cards": "card"}


def to_minor_units(amount: float) -> int:
    return int(round(float(amount) * 100))


def to_major_units(amount) -> float:
    return round(int(amount) / 100, 2)


def to_epoch(expiry: str) -> int:
    """Razorpay expects expire_by as a unix timestamp; accept ISO-8601 too."""
    if str(expiry).isdigit():
        return int(expiry)
    return int(datetime.fromisoformat(str(expiry).replace("Z", "+00:00")).timestamp())


class RazorpayGateway(PaymentGateway):
    name = "Razorpay"
    notifies_by_email = False   # only SMS is requested from Razorpay

    @property
    def api_url(self) -> str:
        return self.settings.RAZORPAY_API_URL

    @property
    def auth(self) -> tuple:
        return (self.token, self.secret)

    def _create_payment_link(self, request: LinkRequest) -> LinkResult:
        customer = {"name": request.customer.name, "contact": request.customer.phone}
        if request.customer.email:
            customer["email"] = request.customer.email

        payload = {
            "reference_id": request.link_id_formatted,
            "amount": to_minor_units(request.amount),
            "currency": request.currency,
            "accept_partial": request.partial_payments,
            "description": request.purpose,
            "customer": customer,
            "notify": {"sms": request.notify, "email": False},
            "reminder_enable": request.auto_reminders,
            "notes": request.notes,
        }
        if request.partial_payments and request.partial_amount:
            payload["first_min_partial_amount"] = to_minor_units(request.partial_amount)
        if request.expiry:
            payload["expire_by"] = to_epoch(request.expiry)

        data = self._post(f"{self.api_url}/payment_links", payload, auth=self.auth)

        return LinkResult(
            link_id=data["id"],
            link_id_formatted=data.get("reference_id", request.link_id_formatted),
            link_gateway=self.pg_id,
            link_url=data["short_url"],
            link_qr="",
            link_purpose=data.get("description", request.purpose),
            link_amount=to_major_units(data.get("amount", to_minor_units(request.amount))),
            link_currency=data.get("currency", request.currency),
            link_expiry=str(data["expire_by"]) if data.get("expire_by") else request.expiry,
        )

    def _create_payout_link(self, request: PayoutRequest, payout_type: str) -> Dict[str, Any]:
        if not self.account_number:
            raise ConfigurationError("Razorpay payouts need a linked settlement bank account")

        if payout_type == "upi":
            fund_account = {"account_type": "vpa", "vpa": {"address": request.upi_id}}
        elif payout_type == "bank":
            fund_account = {
                "account_type": "bank_account",
                "bank_account": {
                    "name": request.bank_details.customer_name,
                    "account_number": request.bank_details.account_number,
                    "ifsc": request.bank_details.ifsc_code,
                },
            }
        else:
            fund_account = {
                "account_type": "card",
                "card": {
                    "number": request.card_details.card_number,
                    "network": request.card_details.card_type,
                },
            }
        fund_account["contact"] = {"name": request.customer.name}

        payload = {
            "account_number": self.account_number,
            "reference_id": request.link_id_formatted,
            "amount": to_minor_units(request.amount),
            "currency": request.currency,
            "mode": PAYOUT_MODES[payout_type],
            "purpose": request.purpose,
            "fund_account": fund_account,
            "narration": request.description[:30] if request.description else None,
            "notes": request.notes,
            "queue_if_low_balance": request.queue_if_low_balance,
        }

        return self._post(f"{self.api_url}/payouts", payload, auth=self.auth)
