"""
Payment Link Model — One row per gateway payment link.
Created by PaymentService, mutated only by the webhook reconciler.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Boolean, Float, Index

from opsdesk.database import Base


class PaymentLink(Base):
    __tablename__ = "payment_links"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    link_pg_id = Column(String(64), nullable=False)                 # Assigned by the gateway
    link_id_formatted = Column(String(32), unique=True, nullable=False)  # e.g. INV-2425-000042
    link_gateway = Column(Integer)                                   # payment_gateways.id
    link_contact_id = Column(Integer, nullable=False, index=True)

    link_url = Column(String(512))
    link_qr = Column(String(2048), default="")
    link_purpose = Column(String(256))
    link_amount = Column(Float, nullable=False)      # Major currency units
    link_amount_paid = Column(Float, default=0.0)
    link_currency = Column(String(3), default="INR")
    link_expiry = Column(String(32))                 # As returned by the gateway

    # Canonical status code, values come from the cashfreeLinkStatusMap option
    link_status = Column(Integer, nullable=False, default=0)
    link_notification = Column(Boolean, default=False)

    link_paid_at = Column(DateTime, nullable=True)
    link_expired_at = Column(DateTime, nullable=True)
    link_failed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_payment_links_reconcile", "link_pg_id", "link_id_formatted"),
    )
