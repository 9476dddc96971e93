"""
Payment Gateway Abstraction Layer
Defines the contract every gateway adapter implements and the shared
plumbing: credential lookup, HTTP with timeout and bounded retry.
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any

import httpx

from opsdesk.config import get_settings
from opsdesk.database import session_scope
from opsdesk.exceptions import ConfigurationError, ProviderError, TransportError
from opsdesk.models.gateway import PaymentGatewayConfig
from opsdesk.schemas.schemas import LinkRequest, LinkResult, PayoutRequest

PAYOUT_TYPES = ("upi", "bank", "cards")


def _has_error(body) -> bool:
    """Razorpay payouts carry an `error` object with null fields on success."""
    if not isinstance(body, dict) or not body.get("error"):
        return False
    error = body["error"]
    if isinstance(error, dict):
        return any(error.get(k) for k in ("code", "description", "reason"))
    return True


class PaymentGateway(ABC):
    """Base class for payment gateways (Cashfree, Razorpay)."""

    #: Name stored in payment_gateways.name
    name: str = ""

    #: True when the gateway itself emails the customer the link
    notifies_by_email: bool = False

    def __init__(self, sandbox: bool = False, transport: Optional[httpx.BaseTransport] = None):
        self.sandbox = sandbox
        self.settings = get_settings()
        self.transport = transport
        self.logger = logging.getLogger(f"opsdesk.gateways.{self.name.lower()}")

        self.pg_id: Optional[int] = None
        self.token: Optional[str] = None
        self.secret: Optional[str] = None
        self.api_version: Optional[str] = None
        self.account_number: Optional[str] = None
        self.fund_source_id: Optional[str] = None

    # ─── Setup ───────────────────────────────────────────────────────

    def setup(self) -> bool:
        """Load the newest active credentials for this gateway.

        Returns False (and logs) when nothing usable is configured; callers
        turn that into their own False result.
        """
        try:
            with session_scope() as db:
                config = (
                    db.query(PaymentGatewayConfig)
                    .filter(
                        PaymentGatewayConfig.name == self.name,
                        PaymentGatewayConfig.sandbox == self.sandbox,
                        PaymentGatewayConfig.is_active.is_(True),
                    )
                    .order_by(PaymentGatewayConfig.id.desc())
                    .first()
                )
                if not config:
                    raise ConfigurationError(
                        f"No active {self.name} configuration (sandbox={self.sandbox})"
                    )

                self.pg_id = config.id
                self.token = config.token
                self.secret = config.secret
                self.api_version = config.api_version
                self.account_number = config.bank_account.account_number if config.bank_account else None
                self.fund_source_id = config.fund_source_id
            return True
        except ConfigurationError as e:
            self.logger.error("Setup failed: %s", e)
            return False
        except Exception:
            self.logger.exception("Something went wrong in %s setup", self.name)
            return False

    # ─── HTTP ────────────────────────────────────────────────────────

    def _client(self, **kwargs) -> httpx.Client:
        return httpx.Client(timeout=self.settings.GATEWAY_TIMEOUT_SECONDS, transport=self.transport, **kwargs)

    def _post(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None,
              auth: Optional[tuple] = None) -> Dict[str, Any]:
        """POST JSON, retrying transport failures with exponential backoff.

        Raises:
            TransportError: network/timeout failure on every attempt.
            ProviderError: non-2xx response or unparsable body (not retried).
        """
        attempts = max(1, self.settings.GATEWAY_MAX_RETRIES)
        backoff = self.settings.GATEWAY_RETRY_BACKOFF_SECONDS

        for attempt in range(1, attempts + 1):
            try:
                with self._client(auth=auth) as client:
                    response = client.post(url, json=payload, headers=headers)
                break
            except httpx.TransportError as e:
                self.logger.warning("%s transport error (attempt %d/%d): %s", self.name, attempt, attempts, e)
                if attempt == attempts:
                    raise TransportError(str(e), gateway=self.name, payload=payload) from e
                time.sleep(backoff * (2 ** (attempt - 1)))

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.is_error:
            raise ProviderError(
                f"{self.name} responded {response.status_code}",
                gateway=self.name, payload=body, status_code=response.status_code,
            )
        if _has_error(body):
            raise ProviderError(f"{self.name} returned an error payload", gateway=self.name, payload=body)
        return body

    # ─── Public contract ─────────────────────────────────────────────

    def create_payment_link(self, request: LinkRequest):
        """Create a payment link. Returns a LinkResult, or False on any failure."""
        if not self.setup():
            return False

        try:
            result = self._create_payment_link(request)
            self.logger.info("Link %s created successfully: %s", request.link_id_formatted, result.link_id)
            return result
        except ProviderError as e:
            self.logger.error(
                "Something went wrong in link creation for %s: %s | response=%s",
                request.link_id_formatted, e, e.payload,
            )
            return False
        except TransportError as e:
            self.logger.error("Gateway unreachable for %s: %s", request.link_id_formatted, e)
            return False
        except Exception:
            self.logger.exception("Unexpected error in link creation for %s", request.link_id_formatted)
            return False

    def create_payout_link(self, request: PayoutRequest, payout_type: str):
        """Create a payout. Returns the raw provider response, or False."""
        if payout_type not in PAYOUT_TYPES:
            self.logger.error("Unsupported payout type '%s'", payout_type)
            return False

        if not self.setup():
            return False

        try:
            response = self._create_payout_link(request, payout_type)
            self.logger.info("Payout %s created successfully: %s", request.link_id_formatted, response)
            return response
        except (ProviderError, ConfigurationError) as e:
            self.logger.error(
                "Something went wrong in payout creation for %s: %s | response=%s",
                request.link_id_formatted, e, getattr(e, "payload", None),
            )
            return False
        except TransportError as e:
            self.logger.error("Gateway unreachable for payout %s: %s", request.link_id_formatted, e)
            return False
        except Exception:
            self.logger.exception("Unexpected error in payout creation for %s", request.link_id_formatted)
            return False

    @abstractmethod
    def _create_payment_link(self, request: LinkRequest) -> LinkResult:
        """Vendor call + normalization. May raise GatewayError."""
        ...

    @abstractmethod
    def _create_payout_link(self, request: PayoutRequest, payout_type: str) -> Dict[str, Any]:
        """Vendor payout call. May raise GatewayError or ConfigurationError."""
        ...
