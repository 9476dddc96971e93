from opsdesk.services.option_service import OptionService
from opsdesk.services.sequence_service import SequenceService
from opsdesk.services.notification_service import NotificationService
from opsdesk.services.payment_service import PaymentService
from opsdesk.services.webhook_service import WebhookService

__all__ = ["OptionService", "SequenceService", "NotificationService", "PaymentService", "WebhookService"]
