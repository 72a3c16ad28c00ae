"""
WhatsApp transport drivers.

Every driver exposes send(recipient, body) -> bool. A False return means the
provider refused or could not be reached; the caller decides what that means.
The active driver is chosen by settings.WHATSAPP_PROVIDER (null | twilio | meta).
"""
import logging

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)


def normalize_phone(phone):
    """'+1 (555) 010-2030' -> '15550102030'."""
    return "".join(ch for ch in str(phone or "") if ch.isdigit())


class NullDriver:
    """Accepts every message without sending it. Used in development and tests."""
    name = "null"

    def send(self, recipient, body):
        logger.info(f"[whatsapp:null] to={recipient} chars={len(body or '')}")
        return True


class HttpDriver:
    """Shared POST/timeout/error handling for the HTTP providers."""
    name = "http"

    def __init__(self, timeout=None):
        self.timeout = timeout or getattr(settings, "WHATSAPP_TIMEOUT", 15)

    def request_kwargs(self, recipient, body):
        raise NotImplementedError

    def url(self):
        raise NotImplementedError

    def send(self, recipient, body):
        to = normalize_phone(recipient)
        if not to:
            logger.warning(f"[whatsapp:{self.name}] empty recipient, not sending")
            return False
        try:
            response = requests.post(self.url(), timeout=self.timeout, **self.request_kwargs(to, body))
            response.raise_for_status()
        except requests.exceptions.Timeout:
            logger.error(f"[whatsapp:{self.name}] timeout after {self.timeout}s to={to}")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"[whatsapp:{self.name}] send failed to={to}: {e}")
            return False
        logger.info(f"[whatsapp:{self.name}] sent to={to} status={response.status_code}")
        return True


class TwilioDriver(HttpDriver):
    name = "twilio"
    BASE_URL = "https://api.twilio.com/2010-04-01"

    def __init__(self, timeout=None):
        super().__init__(timeout)
        self.account_sid = settings.TWILIO_ACCOUNT_SID
        self.auth_token = settings.TWILIO_AUTH_TOKEN
        self.from_number = settings.TWILIO_WHATSAPP_FROM
        if not (self.account_sid and self.auth_token and self.from_number):
            raise ImproperlyConfigured(
                "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_WHATSAPP_FROM are required for WHATSAPP_PROVIDER=twilio"
            )

    def url(self):
        return f"{self.BASE_URL}/Accounts/{self.account_sid}/Messages.json"

    def request_kwargs(self, recipient, body):
        return {
            "data": {
                "From": f"whatsapp:+{normalize_phone(self.from_number)}",
                "To": f"whatsapp:+{recipient}",
                "Body": body,
            },
            "auth": (self.account_sid, self.auth_token),
        }


class MetaDriver(HttpDriver):
    name = "meta"
    BASE_URL = "https://graph.facebook.com/v18.0"

    def __init__(self, timeout=None):
        super().__init__(timeout)
        self.token = settings.META_WHATSAPP_TOKEN
        self.phone_id = settings.META_WHATSAPP_PHONE_ID
        if not (self.token and self.phone_id):
            raise ImproperlyConfigured(
                "META_WHATSAPP_TOKEN and META_WHATSAPP_PHONE_ID are required for WHATSAPP_PROVIDER=meta"
            )

    def url(self):
        return f"{self.BASE_URL}/{self.phone_id}/messages"

    def request_kwargs(self, recipient, body):
        return {
            "json": {
                "messaging_product": "whatsapp",
                "to": recipient,
                "type": "text",
                "text": {"body": body},
            },
            "headers": {
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
            },
        }


DRIVERS = {
    NullDriver.name: NullDriver,
    TwilioDriver.name: TwilioDriver,
    MetaDriver.name: MetaDriver,
}


def get_dispatcher(provider=None):
    """Instantiate the configured driver. Unknown provider names are a configuration error."""
    provider = (provider or getattr(settings, "WHATSAPP_PROVIDER", "null") or "null").lower()
    try:
        driver_class = DRIVERS[provider]
    except KeyError:
        raise ImproperlyConfigured(f"Unknown WHATSAPP_PROVIDER '{provider}' (expected one of {sorted(DRIVERS)})")
    return driver_class()
