"""
Payment tokens: a fixed prefix plus 5 random alphanumerics, unique across bills.
The public payment URL carries only the suffix.
"""
import logging
import secrets
import string

from django.conf import settings

from core.exceptions import NotFoundError
from billing.models import Bill

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.digits + string.ascii_letters
TOKEN_SUFFIX_LENGTH = 5


def _prefix():
    return getattr(settings, "PAYMENT_TOKEN_PREFIX", "elmcorner")


def _random_suffix():
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_SUFFIX_LENGTH))


def generate_payment_token(bill):
    """Assign a token to `bill` if it has none; an existing token is kept. Returns the token."""
    if bill.payment_token:
        return bill.payment_token
    while True:
        token = f"{_prefix()}{_random_suffix()}"
        if not Bill.objects.filter(payment_token=token).exists():
            break
    bill.payment_token = token
    bill.save(update_fields=["payment_token", "updated_at"])
    logger.info(f"[payment_token] bill_id={bill.id} token issued")
    return token


def token_suffix(token):
    prefix = _prefix()
    return token[len(prefix):] if token.startswith(prefix) else token


def payment_url(token):
    base = getattr(settings, "PAYMENT_BASE_URL", "").rstrip("/")
    return f"{base}/payment/{token_suffix(token)}"


def get_bill_by_token(token):
    """Accepts the full token or just the suffix."""
    token = (token or "").strip()
    if not token.startswith(_prefix()):
        token = f"{_prefix()}{token}"
    try:
        return Bill.objects.select_related("student", "teacher", "package").get(payment_token=token)
    except Bill.DoesNotExist:
        raise NotFoundError("Bill not found for this payment link", token=token)
