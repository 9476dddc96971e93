"""
Gateway registry — maps the activePaymentGateway option to an adapter class.
"""
from typing import Optional

import httpx

from opsdesk.exceptions import ConfigurationError
from opsdesk.gateways.base import PaymentGateway, PAYOUT_TYPES
from opsdesk.gateways.cashfree import CashfreeGateway
from opsdesk.gateways.razorpay import RazorpayGateway

GATEWAYS: dict[str, type[PaymentGateway]] = {
    "cashfree": CashfreeGateway,
    "razorpay": RazorpayGateway,
}


def get_gateway(name: str, sandbox: bool = False,
                transport: Optional[httpx.BaseTransport] = None) -> PaymentGateway:
    """Instantiate the adapter registered under `name` (case-insensitive)."""
    gateway_cls = GATEWAYS.get((name or "").strip().lower())
    if gateway_cls is None:
        raise ConfigurationError(f"Unknown payment gateway '{name}'")
    return gateway_cls(sandbox=sandbox, transport=transport)


__all__ = ["GATEWAYS", "PAYOUT_TYPES", "PaymentGateway", "CashfreeGateway", "RazorpayGateway", "get_gateway"]
