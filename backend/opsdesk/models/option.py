"""
Option Model — Key/value business configuration.
Holds paymentLinkNumber, paymentLinkIdPrefix, currentFinancialYear,
activePaymentGateway and cashfreeLinkStatusMap.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text

from opsdesk.database import Base


class Option(Base):
    __tablename__ = "options"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    option_key = Column(String(64), unique=True, nullable=False, index=True)
    option_value = Column(Text)               # Plain string or JSON document

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
