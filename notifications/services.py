"""
Outbound message service: dispatch through the configured driver and record
the outcome in MessageLog.
"""
import logging

from django.utils import timezone

from core.exceptions import NotFoundError
from packages.models import Package

from .dispatcher import get_dispatcher
from .models import MessageLog

logger = logging.getLogger(__name__)


def send_message(recipient, body, message_type=MessageLog.TYPE_BILL, package=None, *, now=None):
    """
    Send one WhatsApp message. Returns the driver's boolean.
    A delivery log row is written for both outcomes.
    """
    now = now or timezone.now()
    dispatcher = get_dispatcher()
    ok = bool(dispatcher.send(recipient, body))
    MessageLog.objects.create(
        recipient=str(recipient or "")[:32],
        message_type=message_type,
        status=MessageLog.STATUS_SENT if ok else MessageLog.STATUS_FAILED,
        package=package,
        provider=dispatcher.name,
        error=None if ok else "Provider did not accept the message",
        sent_at=now if ok else None,
    )
    logger.info(
        f"[send_message] type={message_type} package_id={getattr(package, 'id', None)} "
        f"provider={dispatcher.name} ok={ok}"
    )
    return ok


def package_message_history(package_id):
    """Messages delivered for a package, newest first."""
    if not Package.objects.filter(pk=package_id).exists():
        raise NotFoundError(f"Package {package_id} not found", package_id=package_id)
    return MessageLog.objects.filter(package_id=package_id, status=MessageLog.STATUS_SENT).order_by("-sent_at", "-id")
