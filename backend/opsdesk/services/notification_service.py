"""
Notification Service — WhatsApp template and email sends.
Posts to the configured provider endpoint; without one the send is
simulated and only logged.
"""
import logging
import time
from typing import Dict, Any, List, Optional

import httpx

from opsdesk.config import get_settings
from opsdesk.exceptions import NotificationFailure

logger = logging.getLogger("opsdesk.payments.notifications")


class NotificationService:
    """Best-effort notification sends. Never raises to the caller."""

    transport: Optional[httpx.BaseTransport] = None

    @classmethod
    def _deliver(cls, url: str, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        settings = get_settings()
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            with httpx.Client(timeout=settings.GATEWAY_TIMEOUT_SECONDS, transport=cls.transport) as client:
                response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Provider unreachable: {e}") from e
        if response.is_error:
            raise NotificationFailure(f"Provider responded {response.status_code}: {response.text[:200]}")
        try:
            return response.json()
        except ValueError:
            return {}

    @classmethod
    def send_whatsapp_template(cls, phone: str, template: str, params: List[str]) -> Dict[str, Any]:
        """Send a WhatsApp template message with positional parameters."""
        settings = get_settings()
        if not settings.WHATSAPP_API_URL:
            logger.info("[WHATSAPP] Simulated template '%s' to %s: %s", template, phone, params)
            return {"success": True, "provider": "simulated", "sid": f"WA{int(time.time())}X"}

        try:
            body = cls._deliver(
                settings.WHATSAPP_API_URL, settings.WHATSAPP_API_TOKEN,
                {"to": phone, "template": template, "params": params},
            )
        except NotificationFailure as e:
            logger.error("WhatsApp template '%s' to %s failed: %s", template, phone, e)
            return {"success": False, "error": str(e)}

        logger.info("WhatsApp template '%s' sent to %s", template, phone)
        return {"success": True, "provider": "whatsapp", "response": body}

    @classmethod
    def send_email(cls, to: str, subject: str, body: str) -> Dict[str, Any]:
        """Send a plain-text email."""
        settings = get_settings()
        if not settings.EMAIL_API_URL:
            logger.info("[EMAIL] Simulated mail to %s: %s", to, subject)
            return {"success": True, "provider": "simulated", "sid": f"EM{int(time.time())}Y"}

        try:
            response = cls._deliver(
                settings.EMAIL_API_URL, settings.EMAIL_API_TOKEN,
                {"from": settings.EMAIL_SENDER, "to": to, "subject": subject, "text": body},
            )
        except NotificationFailure as e:
            logger.error("Email '%s' to %s failed: %s", subject, to, e)
            return {"success": False, "error": str(e)}

        logger.info("Email '%s' sent to %s", subject, to)
        return {"success": True, "provider": "email", "response": response}
