"""
Contact Models — Customers and their contact channels.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from opsdesk.database import Base

# ContactInformation.category
CATEGORY_PHONE = 0
CATEGORY_EMAIL = 2

# ContactInformation.info_type
TYPE_PRIMARY = 0


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    first_name = Column(String(64), nullable=False)
    last_name = Column(String(64), default="")

    created_at = Column(DateTime, default=datetime.utcnow)

    informations = relationship("ContactInformation", back_populates="contact")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p).strip()


class ContactInformation(Base):
    __tablename__ = "contact_informations"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)

    info_type = Column(Integer, default=TYPE_PRIMARY)   # 0 primary | 1 secondary
    category = Column(Integer, nullable=False)          # 0 phone | 1 landline | 2 email
    value = Column(String(128), nullable=False)
    is_active = Column(Boolean, default=True)

    contact = relationship("Contact", back_populates="informations")
