"""
Gateway Models — Payment gateway credentials and settlement bank accounts.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from opsdesk.database import Base


class BankDetail(Base):
    """Settlement account a payout gateway disburses from."""
    __tablename__ = "bank_details"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    bank_name = Column(String(128))
    account_number = Column(String(34), nullable=False)
    ifsc = Column(String(11))
    is_active = Column(Boolean, default=True)


class PaymentGatewayConfig(Base):
    __tablename__ = "payment_gateways"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String(32), nullable=False, index=True)   # Cashfree | Razorpay

    token = Column(String(128), nullable=False)     # client id / key id
    secret = Column(String(256), nullable=False)    # client secret / key secret
    api_version = Column(String(16))                # Cashfree x-api-version
    fund_source_id = Column(String(64), nullable=True)  # Cashfree payout fund source, assigned by Cashfree

    sandbox = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    bank_account_id = Column(Integer, ForeignKey("bank_details.id"), nullable=True)
    bank_account = relationship("BankDetail")

    created_at = Column(DateTime, default=datetime.utcnow)
