"""
Class lifecycle: status transitions of a scheduled class and their ledger effects.

pending -> attended | cancelled_by_student | cancelled_by_teacher | absent_student

    attended, absent_student   link a round, bill the class, deduct its hours
    cancelled_by_student       link a round, deduct its hours
    cancelled_by_teacher       link the active round for display only

The whole transition runs in one transaction under the student ledger. A failed
deduction rolls everything back; a failed bill is logged and the transition
still commits.
"""
import logging

from django.conf import settings
from django.utils import timezone

from core.exceptions import NotFoundError, StateError, ValidationError
from core.side_effects import best_effort
from billing.services.accumulator import create_bill_for_class
from lessons.models import ClassRecord
from packages.models import Package
from packages.services.allocator import activate_new_round, can_add_class_to_package, deduct_class
from students.services import student_ledger

logger = logging.getLogger(__name__)

TRANSITIONS = {
    ClassRecord.STATUS_PENDING: (
        ClassRecord.STATUS_ATTENDED,
        ClassRecord.STATUS_CANCELLED_BY_STUDENT,
        ClassRecord.STATUS_CANCELLED_BY_TEACHER,
        ClassRecord.STATUS_ABSENT_STUDENT,
    ),
}

DEDUCTING_STATUSES = (
    ClassRecord.STATUS_ATTENDED,
    ClassRecord.STATUS_CANCELLED_BY_STUDENT,
    ClassRecord.STATUS_ABSENT_STUDENT,
)
BILLING_STATUSES = (ClassRecord.STATUS_ATTENDED, ClassRecord.STATUS_ABSENT_STUDENT)

VALID_STATUSES = {value for value, _ in ClassRecord.STATUS_CHOICES}


@best_effort("class_bill", savepoint=True)
def _bill_class(class_record):
    return create_bill_for_class(class_record)


def _active_package(student_id):
    return (
        Package.objects.select_for_update()
        .filter(student_id=student_id, status=Package.STATUS_ACTIVE)
        .order_by("round_number")
        .first()
    )


def _renew_from_latest(student_id, now, actor_id):
    """Open the next round with the latest round's terms, when auto-renew is on."""
    if not getattr(settings, "PACKAGE_AUTO_RENEW", False):
        return None
    latest = Package.objects.filter(student_id=student_id).order_by("-round_number").first()
    if latest is None or not latest.total_hours:
        logger.warning(f"[class_status] student_id={student_id} no round to renew from")
        return None
    package = activate_new_round(
        student_id,
        latest.total_hours,
        latest.hour_price,
        latest.currency,
        now.date(),
        now=now,
        actor_id=actor_id,
    )
    logger.info(f"[class_status] auto-renewed student_id={student_id} package_id={package.id} round={package.round_number}")
    return package


def _resolve_package(class_record, now, actor_id):
    """Round that absorbs a billable class, or None when it has to wait."""
    hours = class_record.duration_hours
    active = _active_package(class_record.student_id)
    if active is not None and can_add_class_to_package(active.id, hours):
        return active
    renewed = _renew_from_latest(class_record.student_id, now, actor_id)
    if renewed is not None and can_add_class_to_package(renewed.id, hours):
        return renewed
    return None


def transition_class_status(class_id, new_status, *, reason=None, actor_id=None, now=None):
    """Apply a status change and its package/bill effects. Returns the refreshed class."""
    if new_status not in VALID_STATUSES:
        raise ValidationError(f"Unknown class status: {new_status}", status=new_status)
    now = now or timezone.now()

    try:
        student_id = ClassRecord.objects.values_list("student_id", flat=True).get(pk=class_id)
    except ClassRecord.DoesNotExist:
        raise NotFoundError(f"Class {class_id} not found", class_id=class_id)

    with student_ledger(student_id):
        class_record = ClassRecord.objects.select_for_update().select_related("student", "teacher").get(pk=class_id)
        old_status = class_record.status

        if old_status == new_status == ClassRecord.STATUS_PENDING:
            return class_record
        if new_status not in TRANSITIONS.get(old_status, ()):
            raise StateError(
                f"Cannot change class status from {old_status} to {new_status}",
                class_id=class_id,
                from_status=old_status,
                to_status=new_status,
            )

        class_record.status = new_status
        if new_status in ClassRecord.CANCELLED_STATUSES:
            class_record.cancelled_by_id = actor_id
            class_record.cancellation_reason = reason
            class_record.cancelled_at = now

        if new_status == ClassRecord.STATUS_CANCELLED_BY_TEACHER:
            if class_record.package_id is None:
                active = _active_package(student_id)
                class_record.package_id = active.id if active else None
            class_record.save()
        else:
            if class_record.package_id is None:
                package = _resolve_package(class_record, now, actor_id)
                if package is None:
                    class_record.status = ClassRecord.STATUS_WAITING_LIST
                    class_record.save()
                    logger.warning(
                        f"[class_status] class_id={class_id} student_id={student_id} "
                        f"no round can absorb {class_record.duration_hours}h, waiting list"
                    )
                    return class_record
                class_record.package_id = package.id
            class_record.save()

            if new_status in BILLING_STATUSES:
                _bill_class(class_record)
            if new_status in DEDUCTING_STATUSES and class_record.duration_hours > 0:
                deduct_class(class_record.package_id, class_record.duration_hours, notify=True, now=now)

        logger.info(
            f"[class_status] class_id={class_id} {old_status} -> {new_status} "
            f"package_id={class_record.package_id} actor_id={actor_id}"
        )

    class_record.refresh_from_db()
    return class_record
