"""
Error taxonomy for the payment-link core.

Gateways and services raise these internally; the orchestrator boundary
turns everything except ValidationError into a `False` result plus a log
entry, so no vendor diagnostics reach the HTTP client.
"""


class OpsdeskError(Exception):
    """Base class for all application errors."""


class ConfigurationError(OpsdeskError):
    """Required configuration (credentials, prefix map, status map) is missing or inactive."""


class ValidationError(OpsdeskError):
    """Caller input or a required contact channel is missing. Surfaces as HTTP 400."""


class GatewayError(OpsdeskError):
    """Base for failures talking to a payment gateway."""

    def __init__(self, message: str, gateway: str = "", payload=None):
        super().__init__(message)
        self.gateway = gateway
        self.payload = payload


class ProviderError(GatewayError):
    """The gateway rejected the request. Definitive; never retried."""

    def __init__(self, message: str, gateway: str = "", payload=None, status_code: int | None = None):
        super().__init__(message, gateway=gateway, payload=payload)
        self.status_code = status_code


class TransportError(GatewayError):
    """Network failure or timeout talking to a gateway. Retryable."""


class NotificationFailure(OpsdeskError):
    """A WhatsApp or email send failed after the link was created."""


class ReconciliationMiss(OpsdeskError):
    """A webhook referenced a link that is not stored locally."""
