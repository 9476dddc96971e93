import httpx
import pytest

from opsdesk.exceptions import ConfigurationError
from opsdesk.gateways import CashfreeGateway, RazorpayGateway, get_gateway
from opsdesk.schemas.schemas import (
    BankAccountDetails, CustomerDetails, LinkRequest, LinkResult, PayoutRequest,
)


def link_request(**overrides):
    values = dict(
        link_id_formatted="INV-2425-000042",
        amount=500,
        currency="INR",
        expiry="2025-02-01T00:00:00+05:30",
        purpose="Invoice #1",
        notify=True,
        customer=CustomerDetails(name="Asha Rao", phone="9876543210", email="asha@example.com"),
    )
    values.update(overrides)
    return LinkRequest(**values)


def payout_request(**overrides):
    values = dict(
        link_id_formatted="ADV-2425-000043",
        amount=1250.5,
        purpose="vendor advance",
        description="Advance for March",
        customer=CustomerDetails(name="Asha Rao"),
    )
    values.update(overrides)
    return PayoutRequest(**values)


# ─── Registry ────────────────────────────────────────────────────────

def test_registry_resolves_case_insensitively():
    assert isinstance(get_gateway("Cashfree"), CashfreeGateway)
    assert isinstance(get_gateway("razorpay"), RazorpayGateway)


def test_registry_rejects_unknown_gateway():
    with pytest.raises(ConfigurationError):
        get_gateway("paypal")


# ─── Cashfree ────────────────────────────────────────────────────────

def test_cashfree_payment_link_is_normalized(make_gateway, recorder, cashfree_response):
    pg_id = make_gateway(name="Cashfree", token="cf_id", secret="cf_secret")
    rec = recorder(body=cashfree_response)

    result = CashfreeGateway(transport=rec.transport).create_payment_link(link_request())

    assert isinstance(result, LinkResult)
    assert result.link_id == "1996567"
    assert result.link_id_formatted == "INV-2425-000042"
    assert result.link_gateway == pg_id
    assert result.link_url.startswith("https://payments.cashfree.com/links/")
    assert result.link_qr == "data:image/png;base64,AAAA"
    assert result.link_amount == 500.0

    sent = rec.requests[0]
    assert sent.url == "https://api.cashfree.com/pg/links"
    assert sent.headers["x-client-id"] == "cf_id"
    assert sent.headers["x-client-secret"] == "cf_secret"
    assert sent.headers["x-api-version"] == "2023-08-01"
    body = rec.last_json
    assert body["link_amount"] == 500
    assert body["link_id"] == "INV-2425-000042"
    assert body["customer_details"]["customer_phone"] == "9876543210"
    assert body["link_notify"] == {"send_sms": True, "send_email": True}
    assert "link_minimum_partial_amount" not in body


def test_cashfree_sandbox_uses_sandbox_credentials_and_host(make_gateway, recorder, cashfree_response):
    make_gateway(name="Cashfree", token="live_id", sandbox=False)
    make_gateway(name="Cashfree", token="test_id", sandbox=True)
    rec = recorder(body=cashfree_response)

    result = CashfreeGateway(sandbox=True, transport=rec.transport).create_payment_link(link_request())

    assert result is not False
    assert rec.requests[0].url.host == "sandbox.cashfree.com"
    assert rec.requests[0].headers["x-client-id"] == "test_id"


def test_setup_prefers_newest_active_configuration(make_gateway, recorder, cashfree_response):
    make_gateway(name="Cashfree", token="old_id")
    newest = make_gateway(name="Cashfree", token="new_id")
    make_gateway(name="Cashfree", token="inactive_id", is_active=False)
    rec = recorder(body=cashfree_response)

    result = CashfreeGateway(transport=rec.transport).create_payment_link(link_request())

    assert result.link_gateway == newest
    assert rec.requests[0].headers["x-client-id"] == "new_id"


def test_missing_configuration_returns_false_without_calling(recorder, cashfree_response):
    rec = recorder(body=cashfree_response)

    assert CashfreeGateway(transport=rec.transport).create_payment_link(link_request()) is False
    assert rec.requests == []


def test_provider_error_returns_false_and_is_not_retried(make_gateway, recorder):
    make_gateway(name="Cashfree")
    rec = recorder(status_code=400, body={"message": "link_id already exists", "type": "invalid_request_error"})

    assert CashfreeGateway(transport=rec.transport).create_payment_link(link_request()) is False
    assert len(rec.requests) == 1


def test_transport_error_is_retried_then_returns_false(make_gateway, recorder):
    make_gateway(name="Cashfree")
    rec = recorder(exc=httpx.ConnectTimeout("timed out"))

    assert CashfreeGateway(transport=rec.transport).create_payment_link(link_request()) is False
    assert len(rec.requests) == 3


def test_transport_error_recovers_on_retry(make_gateway, cashfree_response):
    make_gateway(name="Cashfree")
    calls = []

    def flaky(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection reset")
        return httpx.Response(200, json=cashfree_response(request))

    result = CashfreeGateway(transport=httpx.MockTransport(flaky)).create_payment_link(link_request())

    assert isinstance(result, LinkResult)
    assert len(calls) == 2


def test_cashfree_bank_payout(make_gateway, recorder):
    make_gateway(name="Cashfree", account_number="50100012345678", fund_source_id="CASHFREE_12345")
    rec = recorder(body={"transfer_id": "ADV-2425-000043", "status": "RECEIVED"})
    request = payout_request(
        bank_details=BankAccountDetails(customer_name="Asha Rao", account_number="0011223344", ifsc_code="SBIN0000001"),
    )

    response = CashfreeGateway(transport=rec.transport).create_payout_link(request, "bank")

    assert response == {"transfer_id": "ADV-2425-000043", "status": "RECEIVED"}
    assert rec.requests[0].url == "https://api.cashfree.com/payout/transfers"
    body = rec.last_json
    assert body["transfer_mode"] == "banktransfer"
    assert body["transfer_amount"] == 1250.5
    assert body["fundsource_id"] == "CASHFREE_12345"
    assert body["beneficiary_details"]["beneficiary_instrument_details"] == {
        "bank_account_number": "0011223344",
        "bank_ifsc": "SBIN0000001",
    }


# ─── Razorpay ────────────────────────────────────────────────────────

def test_razorpay_payment_link_amount_round_trips_to_major_units(make_gateway, recorder, razorpay_response):
    pg_id = make_gateway(name="Razorpay", token="rzp_test_key", secret="rzp_secret")
    rec = recorder(body=razorpay_response)

    result = RazorpayGateway(transport=rec.transport).create_payment_link(link_request(amount=499.99))

    assert rec.last_json["amount"] == 49999
    assert rec.last_json["reference_id"] == "INV-2425-000042"
    assert rec.last_json["notify"] == {"sms": True, "email": False}
    assert isinstance(rec.last_json["expire_by"], int)
    assert rec.requests[0].url == "https://api.razorpay.com/v1/payment_links"
    assert rec.requests[0].headers["authorization"].startswith("Basic ")

    assert result.link_id == "plink_ExjpAUN3gVHrPJ"
    assert result.link_id_formatted == "INV-2425-000042"
    assert result.link_gateway == pg_id
    assert result.link_url == "https://rzp.io/i/nxrHnLJ"
    assert result.link_qr == ""
    assert result.link_amount == 499.99


def test_razorpay_error_payload_returns_false(make_gateway, recorder):
    make_gateway(name="Razorpay")
    rec = recorder(status_code=400, body={"error": {"code": "BAD_REQUEST_ERROR", "description": "amount too low"}})

    assert RazorpayGateway(transport=rec.transport).create_payment_link(link_request()) is False


def test_razorpay_upi_payout_queues_on_low_balance(make_gateway, recorder):
    make_gateway(name="Razorpay", account_number="7878780080316316")
    provider_response = {
        "id": "pout_00000000000001",
        "status": "queued",
        "error": {"description": None, "source": None, "reason": None},
    }
    rec = recorder(body=provider_response)

    response = RazorpayGateway(transport=rec.transport).create_payout_link(
        payout_request(upi_id="asha@okbank"), "upi"
    )

    assert response == provider_response
    assert rec.requests[0].url == "https://api.razorpay.com/v1/payouts"
    body = rec.last_json
    assert body["account_number"] == "7878780080316316"
    assert body["amount"] == 125050
    assert body["mode"] == "UPI"
    assert body["queue_if_low_balance"] is True
    assert body["fund_account"]["account_type"] == "vpa"
    assert body["fund_account"]["vpa"] == {"address": "asha@okbank"}
    assert body["fund_account"]["contact"] == {"name": "Asha Rao"}


def test_razorpay_payout_without_settlement_account_fails(make_gateway, recorder):
    make_gateway(name="Razorpay")
    rec = recorder(body={})

    result = RazorpayGateway(transport=rec.transport).create_payout_link(
        payout_request(upi_id="asha@okbank"), "upi"
    )

    assert result is False
    assert rec.requests == []


def test_unknown_payout_type_returns_false(make_gateway, recorder):
    make_gateway(name="Razorpay", account_number="7878780080316316")
    rec = recorder(body={})

    assert RazorpayGateway(transport=rec.transport).create_payout_link(payout_request(), "cheque") is False
    assert rec.requests == []


def test_cashfree_payout_without_fund_source_uses_default_balance(make_gateway, recorder):
    make_gateway(name="Cashfree", account_number="50100012345678")
    rec = recorder(body={"transfer_id": "ADV-2425-000043", "status": "RECEIVED"})

    response = CashfreeGateway(transport=rec.transport).create_payout_link(
        payout_request(upi_id="asha@okbank"), "upi"
    )

    assert response["status"] == "RECEIVED"
    assert "fundsource_id" not in rec.last_json
    assert rec.last_json["beneficiary_details"]["beneficiary_instrument_details"] == {"vpa": "asha@okbank"}
