"""
Package allocator: package rounds, hour deduction and waiting-list admission.

All mutations run under students.services.student_ledger, so the student's
packages and classes are read and rewritten by one writer at a time.
Payment requests for rounds that reach `finished` are scheduled with
transaction.on_commit and are best-effort.
"""
import logging

from django.conf import settings
from django.db.models import Max
from django.utils import timezone

from core.exceptions import NotFoundError, StateError, ValidationError
from core.side_effects import after_commit, best_effort
from core.utils import ZERO, quantize
from billing.services.accumulator import create_bill_for_class, send_automatic_bill_notification
from lessons.models import ClassRecord
from packages.models import Package
from students.services import student_ledger

logger = logging.getLogger(__name__)

FROZEN_STATUSES = (Package.STATUS_FINISHED, Package.STATUS_PAID)


def _get_package(package_id, lock=False):
    qs = Package.objects.select_for_update() if lock else Package.objects
    try:
        return qs.get(pk=package_id)
    except Package.DoesNotExist:
        raise NotFoundError(f"Package {package_id} not found", package_id=package_id)


def _decimal(value, field):
    """quantize() with non-numeric and non-finite input reported as ValidationError."""
    try:
        number = quantize(value)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not number.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    return number


def _positive_hours(value, field):
    if value in (None, ""):
        raise ValidationError(f"{field} is required", field=field)
    hours = _decimal(value, field)
    if hours <= 0:
        raise ValidationError(f"{field} must be greater than 0", field=field)
    return hours


def _price(value):
    price = _decimal(value, "hour_price")
    if price < 0:
        raise ValidationError("hour_price cannot be negative", field="hour_price")
    return price


def _notify_finished(package, now):
    after_commit(send_automatic_bill_notification, package, now=now)


def _force_finish_active(student_id, now, exclude_id=None):
    """Finish every active round of the student (remaining hours/classes -> 0)."""
    active = Package.objects.select_for_update().filter(student_id=student_id, status=Package.STATUS_ACTIVE)
    if exclude_id is not None:
        active = active.exclude(pk=exclude_id)
    finished = []
    for package in active:
        package.status = Package.STATUS_FINISHED
        if package.remaining_hours is not None:
            package.remaining_hours = ZERO
        package.remaining_classes = 0
        package.save(update_fields=["status", "remaining_hours", "remaining_classes", "updated_at"])
        _notify_finished(package, now)
        finished.append(package)
        logger.info(f"[force_finish] package_id={package.id} round={package.round_number} student_id={student_id}")
    return finished


def activate_new_round(student_id, total_hours, hour_price, currency=None, start_date=None, *, now=None, actor_id=None):
    """
    Open the next round for a student: finish any active round, create round
    max+1 with remaining_hours = total_hours, then drain the waiting list into it.
    """
    total_hours = _positive_hours(total_hours, "total_hours")
    hour_price = _price(hour_price)
    now = now or timezone.now()

    with student_ledger(student_id) as student:
        _force_finish_active(student.id, now)
        last_round = Package.objects.filter(student_id=student.id).aggregate(m=Max("round_number"))["m"] or 0
        package = Package.objects.create(
            student=student,
            round_number=last_round + 1,
            start_date=start_date or now.date(),
            total_hours=total_hours,
            remaining_hours=total_hours,
            total_classes=0,
            remaining_classes=0,
            hour_price=hour_price,
            currency=currency or student.currency or settings.DEFAULT_CURRENCY,
            status=Package.STATUS_ACTIVE,
        )
        logger.info(
            f"[activate_new_round] student_id={student.id} package_id={package.id} "
            f"round={package.round_number} hours={total_hours} price={hour_price} actor_id={actor_id}"
        )
        process_waiting_list_for_student(student.id, package, now=now)
        package.refresh_from_db()
    return package


def can_add_class_to_package(package_id, duration_hours):
    """Evaluated against the current row: hours-tracked rounds need enough hours, legacy ones a class left."""
    package = _get_package(package_id)
    return _fits(package, _decimal(duration_hours, "duration_hours"))


def _fits(package, duration_hours):
    if package.status in FROZEN_STATUSES:
        return False
    if package.tracks_hours:
        return package.remaining_hours >= duration_hours
    return package.remaining_classes > 0


def deduct_class(package_id, duration_hours, notify=True, *, now=None):
    """
    Consume hours from an active round, clamped at 0. Returns True iff applied.
    Reaching 0 finishes the round; with notify=True the payment request for
    its bills is sent after commit.
    """
    duration_hours = _decimal(duration_hours, "duration_hours")
    if duration_hours <= 0:
        raise ValidationError("duration_hours must be greater than 0", duration_hours=str(duration_hours))
    now = now or timezone.now()

    package = _get_package(package_id)
    with student_ledger(package.student_id):
        package = _get_package(package_id, lock=True)
        if package.status in FROZEN_STATUSES:
            logger.info(f"[deduct_class] package_id={package.id} status={package.status}, not deducting")
            return False
        if package.tracks_hours and package.remaining_hours <= 0:
            return False
        if not package.tracks_hours and package.remaining_classes <= 0:
            return False

        before = package.remaining_hours
        if package.tracks_hours:
            package.remaining_hours = max(ZERO, quantize(package.remaining_hours - duration_hours))
            if package.remaining_hours <= 0:
                package.status = Package.STATUS_FINISHED
        # DEPRECATED: class-count bookkeeping for legacy rounds
        if package.remaining_classes > 0:
            package.remaining_classes -= 1
            if package.remaining_classes <= 0 and not package.tracks_hours:
                package.status = Package.STATUS_FINISHED
        package.save(update_fields=["remaining_hours", "remaining_classes", "status", "updated_at"])

        finished = package.status == Package.STATUS_FINISHED
        logger.info(
            f"[deduct_class] package_id={package.id} hours={duration_hours} "
            f"remaining {before} -> {package.remaining_hours} finished={finished}"
        )
        if finished and notify:
            _notify_finished(package, now)
    return True


def add_class_to_package(class_record):
    """Schedule-time gate: pending if the class's package can absorb it, else waiting_list."""
    if not class_record.package_id:
        return class_record
    if can_add_class_to_package(class_record.package_id, class_record.duration_hours):
        class_record.status = ClassRecord.STATUS_PENDING
    else:
        class_record.status = ClassRecord.STATUS_WAITING_LIST
        logger.warning(
            f"[add_class_to_package] class_id={class_record.id} package_id={class_record.package_id} "
            f"cannot absorb {class_record.duration_hours}h, waiting list"
        )
    class_record.save(update_fields=["status", "updated_at"])
    return class_record


@best_effort("waiting_list_bill", savepoint=True)
def _bill_drained_class(class_record):
    return create_bill_for_class(class_record)


def process_waiting_list_for_student(student_id, package, *, now=None):
    """
    Admit waiting classes oldest first by (class_date, start_time). Stops at the
    first class that does not fit. Admitted classes become attended, are billed
    and deducted. Returns the number admitted.
    """
    now = now or timezone.now()
    package_id = package.id if isinstance(package, Package) else package
    processed = 0

    with student_ledger(student_id):
        waiting = ClassRecord.objects.filter(
            student_id=student_id,
            status=ClassRecord.STATUS_WAITING_LIST,
        ).select_related("student", "teacher").order_by("class_date", "start_time", "id")

        for class_record in waiting:
            current = _get_package(package_id)
            hours = class_record.duration_hours
            if not _fits(current, hours):
                logger.info(
                    f"[waiting_list] student_id={student_id} package_id={package_id} "
                    f"class_id={class_record.id} ({hours}h) does not fit, stopping"
                )
                break
            class_record.package_id = package_id
            class_record.status = ClassRecord.STATUS_ATTENDED
            class_record.save(update_fields=["package", "status", "updated_at"])
            _bill_drained_class(class_record)
            if hours > 0:
                deduct_class(package_id, hours, notify=True, now=now)
            processed += 1

    if processed:
        logger.info(f"[waiting_list] student_id={student_id} package_id={package_id} admitted={processed}")
    if isinstance(package, Package):
        package.refresh_from_db()
    return processed


def reactivate_package(package_id, overrides=None, *, now=None, actor_id=None):
    """
    Re-open a finished round with its own or overridden terms, then drain the
    waiting list into it. Any other active round of the student is finished first.
    """
    overrides = overrides or {}
    now = now or timezone.now()
    package = _get_package(package_id)

    with student_ledger(package.student_id):
        package = _get_package(package_id, lock=True)
        if package.status != Package.STATUS_FINISHED:
            raise StateError(
                "Package is not finished and cannot be reactivated",
                package_id=package.id,
                status=package.status,
            )

        total_hours = overrides.get("total_hours")
        if total_hours is None:
            total_hours = package.total_hours
        total_hours = _positive_hours(total_hours, "total_hours")
        package.total_hours = total_hours
        package.remaining_hours = total_hours
        package.remaining_classes = package.total_classes
        hour_price = overrides.get("hour_price")
        package.hour_price = _price(package.hour_price if hour_price is None else hour_price)
        package.currency = overrides.get("currency") or package.currency
        package.start_date = overrides.get("start_date") or package.start_date

        _force_finish_active(package.student_id, now, exclude_id=package.id)
        package.status = Package.STATUS_ACTIVE
        package.save()
        logger.info(
            f"[reactivate_package] package_id={package.id} round={package.round_number} "
            f"hours={total_hours} actor_id={actor_id}"
        )
        process_waiting_list_for_student(package.student_id, package, now=now)
        package.refresh_from_db()
    return package


def finished_packages(student_id=None):
    """Rounds waiting for payment, most recently finished first."""
    qs = Package.objects.filter(status=Package.STATUS_FINISHED).select_related("student")
    if student_id:
        qs = qs.filter(student_id=student_id)
    return qs.order_by("-updated_at", "-id")


def finished_count():
    """Rounds waiting for payment, notified or not. Backs the finished-list badge."""
    return Package.objects.filter(status=Package.STATUS_FINISHED).count()
