"""
Pydantic Schemas — Request & Response models for API validation,
plus the canonical gateway shapes shared by PaymentService and the adapters.
"""
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


# ──────────────── Canonical gateway shapes ────────────────

class CustomerDetails(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


class LinkRequest(BaseModel):
    """Gateway-agnostic payment link request. Amount in major units."""
    link_id_formatted: str
    amount: float = Field(..., gt=0)
    currency: str = "INR"
    expiry: Optional[str] = None
    purpose: str = ""
    notify: bool = False
    partial_payments: bool = False
    partial_amount: float = 0
    auto_reminders: bool = False
    customer: CustomerDetails
    notes: Dict[str, Any] = {}
    meta: Dict[str, Any] = {}


class LinkResult(BaseModel):
    """Normalized gateway response. Serialized with camelCase aliases."""
    link_id: str = Field(..., alias="linkId")
    link_id_formatted: str = Field(..., alias="linkIdFormatted")
    link_gateway: Optional[int] = Field(None, alias="linkGateway")
    link_url: str = Field(..., alias="linkUrl")
    link_qr: str = Field("", alias="linkQr")
    link_purpose: str = Field("", alias="linkPurpose")
    link_amount: float = Field(..., alias="linkAmount")     # Major units
    link_currency: str = Field("INR", alias="linkCurrency")
    link_expiry: Optional[str] = Field(None, alias="linkExpiry")

    class Config:
        populate_by_name = True


class BankAccountDetails(BaseModel):
    customer_name: str = Field(..., alias="customerName")
    account_number: str = Field(..., alias="accountNumber")
    ifsc_code: str = Field(..., alias="ifscCode")

    class Config:
        populate_by_name = True


class CardDetails(BaseModel):
    card_number: str = Field(..., alias="cardNumber")
    card_type: str = Field(..., alias="cardType")   # visa | mastercard | rupay ...

    class Config:
        populate_by_name = True


class PayoutRequest(BaseModel):
    """Disbursement instruction. Constructed per call, never persisted."""
    link_id_formatted: str
    amount: float = Field(..., gt=0)
    currency: str = "INR"
    purpose: str = "payout"
    description: str = ""
    customer: CustomerDetails
    upi_id: Optional[str] = None
    bank_details: Optional[BankAccountDetails] = None
    card_details: Optional[CardDetails] = None
    queue_if_low_balance: bool = True
    notes: Dict[str, Any] = {}


# ──────────────── Payment Links API ────────────────

class PaymentLinkCreateRequest(BaseModel):
    amount: float = Field(..., gt=0, description="Amount in major currency units")
    link_expiry_time: Optional[str] = Field(None, alias="linkExpiryTime")
    link_purpose: str = Field(..., alias="linkPurpose")
    link_notify: bool = Field(False, alias="linkNotify")
    contact_id: int = Field(..., alias="contactId")
    link_type: str = Field(..., alias="linkType", description="Business category, e.g. invoice")

    class Config:
        populate_by_name = True


class PaymentLinkCreateResponse(BaseModel):
    success: bool
    message: str = ""
    data: Optional[Dict[str, Any]] = None


class PayoutCreateRequest(BaseModel):
    amount: float = Field(..., gt=0)
    link_purpose: str = Field("payout", alias="linkPurpose")
    type: str = Field(..., description="Payout type: upi | bank | cards")
    description: str = ""
    upi_id: Optional[str] = Field(None, alias="upiId")
    bank_details: Optional[BankAccountDetails] = Field(None, alias="bankDetails")
    card_details: Optional[CardDetails] = Field(None, alias="cardDetails")
    contact_id: int = Field(..., alias="contactId")
    link_type: str = Field(..., alias="linkType")

    class Config:
        populate_by_name = True


class PayoutCreateResponse(BaseModel):
    message: str = ""
    data: Optional[Dict[str, Any]] = None


class PaymentLinkStatusResponse(BaseModel):
    link_id_formatted: str
    link_pg_id: str
    link_status: int
    link_amount: float
    link_amount_paid: float = 0.0
    link_url: Optional[str] = None
    link_paid_at: Optional[datetime] = None
    link_expired_at: Optional[datetime] = None
    link_failed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WebhookAck(BaseModel):
    message: str


# ──────────────── Generic ────────────────

class ErrorResponse(BaseModel):
    detail: str
    error_code: Optional[str] = None
