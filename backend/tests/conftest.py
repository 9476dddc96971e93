"""
Shared fixtures: in-memory SQLite bound to the app's session factory,
data builders, and an httpx MockTransport recorder for gateway traffic.
"""
import json
import os
import tempfile

# Settings are cached on first import, so the environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="opsdesk-logs-"))
os.environ.setdefault("GATEWAY_RETRY_BACKOFF_SECONDS", "0")
os.environ.setdefault("GATEWAY_MAX_RETRIES", "3")
os.environ.setdefault("GATEWAY_SANDBOX", "false")

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from opsdesk import database
from opsdesk.models import (
    Option, Contact, ContactInformation, BankDetail, PaymentGatewayConfig, PaymentLink,
)
from opsdesk.models.contact import CATEGORY_PHONE, CATEGORY_EMAIL


@pytest.fixture(autouse=True)
def session_factory(monkeypatch):
    """Fresh in-memory database per test, shared by every session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(database, "SessionLocal", factory)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def options(db):
    """Write options: options(paymentLinkNumber="41", ...)."""
    def _set(**values):
        for key, value in values.items():
            if isinstance(value, (dict, list)):
                value = json.dumps(value)
            row = db.query(Option).filter(Option.option_key == key).first()
            if row:
                row.option_value = value
            else:
                db.add(Option(option_key=key, option_value=value))
        db.commit()
    return _set


@pytest.fixture
def link_options(options):
    """The standard configuration used across payment tests."""
    options(
        paymentLinkIdPrefix={"invoice": "INV", "advance": "ADV"},
        paymentLinkNumber="41",
        currentFinancialYear="2425",
        activePaymentGateway="cashfree",
        cashfreeLinkStatusMap={"PAID": "1", "PARTIALLY_PAID": "4", "EXPIRED": "2", "CANCELLED": "5"},
    )
    return options


@pytest.fixture
def make_contact(db):
    def _make(first_name="Asha", last_name="Rao", phone="9876543210", email="asha@example.com"):
        contact = Contact(first_name=first_name, last_name=last_name)
        db.add(contact)
        db.flush()
        if phone:
            db.add(ContactInformation(contact_id=contact.id, category=CATEGORY_PHONE, value=phone))
        if email:
            db.add(ContactInformation(contact_id=contact.id, category=CATEGORY_EMAIL, value=email))
        db.commit()
        return contact.id
    return _make


@pytest.fixture
def make_gateway(db):
    def _make(name="Cashfree", token="cf_id", secret="cf_secret", sandbox=False,
              is_active=True, account_number=None, api_version="2023-08-01",
              fund_source_id=None):
        bank = None
        if account_number:
            bank = BankDetail(bank_name="Settlement", account_number=account_number, ifsc="HDFC0000001")
            db.add(bank)
            db.flush()
        row = PaymentGatewayConfig(
            name=name, token=token, secret=secret, sandbox=sandbox, is_active=is_active,
            api_version=api_version, fund_source_id=fund_source_id,
            bank_account_id=bank.id if bank else None,
        )
        db.add(row)
        db.commit()
        return row.id
    return _make


class GatewayRecorder:
    """MockTransport handler that records requests and replays a response."""

    def __init__(self, status_code=200, body=None, exc=None):
        self.status_code = status_code
        self.body = body or {}
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        body = self.body(request) if callable(self.body) else self.body
        return httpx.Response(self.status_code, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def recorder():
    return GatewayRecorder


def cashfree_link_response(request: httpx.Request) -> dict:
    """Echo a Cashfree PG create-link response for the posted request."""
    sent = json.loads(request.content)
    return {
        "cf_link_id": 1996567,
        "link_id": sent["link_id"],
        "link_url": f"https://payments.cashfree.com/links/o{sent['link_id'][-6:]}",
        "link_qrcode": "data:image/png;base64,AAAA",
        "link_purpose": sent["link_purpose"],
        "link_amount": sent["link_amount"],
        "link_currency": sent["link_currency"],
        "link_status": "ACTIVE",
        "link_expiry_time": sent.get("link_expiry_time", "2025-02-01T00:00:00+05:30"),
    }


def razorpay_link_response(request: httpx.Request) -> dict:
    sent = json.loads(request.content)
    return {
        "id": "plink_ExjpAUN3gVHrPJ",
        "reference_id": sent["reference_id"],
        "short_url": "https://rzp.io/i/nxrHnLJ",
        "description": sent["description"],
        "amount": sent["amount"],
        "currency": sent["currency"],
        "status": "created",
        "expire_by": sent.get("expire_by", 0),
    }


@pytest.fixture
def payment_links(db):
    def _all():
        db.expire_all()
        return db.query(PaymentLink).all()
    return _all


@pytest.fixture
def option_value(db):
    def _get(key):
        db.expire_all()
        row = db.query(Option).filter(Option.option_key == key).first()
        return row.option_value if row else None
    return _get


@pytest.fixture
def cashfree_response():
    return cashfree_link_response


@pytest.fixture
def razorpay_response():
    return razorpay_link_response
