from opsdesk.models.option import Option
from opsdesk.models.contact import Contact, ContactInformation
from opsdesk.models.gateway import BankDetail, PaymentGatewayConfig
from opsdesk.models.payment_link import PaymentLink

__all__ = ["Option", "Contact", "ContactInformation", "BankDetail", "PaymentGatewayConfig", "PaymentLink"]
