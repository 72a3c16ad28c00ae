"""
Billing accumulator: turns billable classes into one accumulating pending bill
per package, and a finished package into a WhatsApp payment request.

Merge rule: for (package, student, is_custom=False) there is at most one pending
bill. A billable class is appended to it (class id, hours, amount) unless it is
already listed; once that bill is sent or paid the next class opens a new one.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from core.exceptions import NotFoundError, NotificationError, StateError, ValidationError
from core.side_effects import best_effort
from core.utils import ZERO, amount_for_minutes, minutes_to_hours, quantize
from billing.models import Bill
from billing.services.messages import render_bill_message, render_package_bill_message
from lessons.models import ClassRecord
from notifications.models import MessageLog
from notifications.services import send_message
from packages.models import Package
from students.models import Student, Teacher
from students.services import student_ledger

logger = logging.getLogger(__name__)

BILLABLE_STATUSES = (ClassRecord.STATUS_ATTENDED, ClassRecord.STATUS_ABSENT_STUDENT)


def _get_package(package_id):
    try:
        return Package.objects.select_related("student").get(pk=package_id)
    except Package.DoesNotExist:
        raise NotFoundError(f"Package {package_id} not found", package_id=package_id)


def _hour_price(package, teacher):
    """package.hour_price if > 0, else the teacher's hourly rate, else 0."""
    if package.hour_price and package.hour_price > 0:
        return package.hour_price
    if teacher is not None and teacher.hourly_rate and teacher.hourly_rate > 0:
        return teacher.hourly_rate
    return ZERO


def _currency(package, student):
    return package.currency or (student.currency if student else None) or settings.DEFAULT_CURRENCY


def create_bill_for_class(class_record):
    """
    Add an attended/absent class to its package's pending bill, or open one.
    Calling it again for the same class leaves the bill unchanged.
    """
    if class_record.status not in BILLABLE_STATUSES:
        raise StateError(
            f"Cannot create bill for class with status: {class_record.status}",
            class_id=class_record.id,
            status=class_record.status,
        )
    if not class_record.package_id:
        raise StateError("Class is not linked to a package", class_id=class_record.id)

    package = _get_package(class_record.package_id)
    student = class_record.student
    teacher = class_record.teacher
    hours = minutes_to_hours(class_record.duration)
    amount = amount_for_minutes(class_record.duration, _hour_price(package, teacher))
    currency = _currency(package, student)

    with transaction.atomic():
        bill = (
            Bill.objects.select_for_update()
            .filter(
                package_id=package.id,
                student_id=class_record.student_id,
                status=Bill.STATUS_PENDING,
                is_custom=False,
            )
            .order_by("id")
            .first()
        )

        if bill is None:
            bill = Bill.objects.create(
                package=package,
                student_id=class_record.student_id,
                teacher_id=class_record.teacher_id,
                class_ids=[class_record.id],
                total_hours=hours,
                amount=amount,
                currency=currency,
                status=Bill.STATUS_PENDING,
                bill_date=class_record.class_date,
                is_custom=False,
            )
            logger.info(
                f"[create_bill] opened bill_id={bill.id} package_id={package.id} "
                f"class_id={class_record.id} hours={hours} amount={amount} {currency}"
            )
            return bill

        if bill.includes_class(class_record.id):
            logger.info(f"[create_bill] class_id={class_record.id} already on bill_id={bill.id}, unchanged")
            return bill

        bill.class_ids = list(bill.class_ids or []) + [class_record.id]
        bill.total_hours = quantize(bill.total_hours) + hours
        bill.amount = quantize(bill.amount) + amount
        if bill.currency != currency:
            bill.currency = currency
        bill.save(update_fields=["class_ids", "total_hours", "amount", "currency", "updated_at"])
        logger.info(
            f"[create_bill] merged class_id={class_record.id} into bill_id={bill.id} "
            f"total_hours={bill.total_hours} amount={bill.amount}"
        )
        return bill


def get_bills_summary(package_id):
    """
    total_amount is the contracted value of the round (total_hours x hour_price),
    not the sum of bills issued so far. unpaid_amount subtracts paid bills, floored at 0.
    """
    package = _get_package(package_id)
    bills = Bill.objects.filter(package_id=package.id)
    total_hours = quantize(package.total_hours)
    hour_price = quantize(package.hour_price)
    total_amount = quantize(total_hours * hour_price)
    paid = quantize(bills.filter(status=Bill.STATUS_PAID).aggregate(total=Sum("amount"))["total"])
    unpaid_amount = max(ZERO, quantize(total_amount - paid))
    return {
        "total_amount": total_amount,
        "unpaid_amount": unpaid_amount,
        "bill_count": bills.count(),
        "currency": package.currency,
        "total_hours": total_hours,
        "hour_price": hour_price,
    }


def notify_package_bills(package, *, now=None):
    """
    Send the payment request for a package's unpaid bills to the student's WhatsApp.
    On success every included bill becomes `sent` and the package notification
    counters are bumped. Raises NotificationError when nothing could be sent.
    """
    now = now or timezone.now()
    package = _get_package(package.id if isinstance(package, Package) else package)
    student = package.student
    if not student.whatsapp:
        raise NotificationError(
            "Student does not have a WhatsApp number",
            package_id=package.id,
            student_id=student.id,
        )

    bills = list(
        Bill.objects.filter(package_id=package.id, status__in=Bill.UNPAID_STATUSES).order_by("id")
    )
    summary = get_bills_summary(package.id)
    body = render_package_bill_message(package, bills, summary, student.language)

    if not send_message(student.whatsapp, body, MessageLog.TYPE_BILL, package=package, now=now):
        raise NotificationError("Failed to send payment request", package_id=package.id)

    with transaction.atomic():
        Bill.objects.filter(id__in=[b.id for b in bills]).update(
            status=Bill.STATUS_SENT, sent_at=now, updated_at=now
        )
        Package.objects.filter(pk=package.id).update(
            last_notification_sent=now,
            notification_count=F("notification_count") + 1,
        )
    logger.info(f"[notify_package] package_id={package.id} bills_sent={len(bills)}")
    return True


@best_effort("send_automatic_bill_notification")
def send_automatic_bill_notification(package, *, now=None):
    """Best-effort wrapper of notify_package_bills: failures are logged, result is None."""
    return notify_package_bills(package, now=now)


def notify_packages(package_ids, *, now=None):
    """
    Manual payment requests for several rounds. Each package is sent on its own;
    a missing package or a failed send is counted and reported, not raised.
    Returns {"success_count", "failed_count", "errors"}.
    """
    now = now or timezone.now()
    success_count = 0
    errors = []
    for package_id in package_ids:
        try:
            notify_package_bills(package_id, now=now)
        except (NotFoundError, NotificationError) as e:
            logger.warning(f"[notify_packages] package_id={package_id} not sent: {e.message}")
            errors.append(f"Package #{package_id}: {e.message}")
            continue
        success_count += 1
    logger.info(f"[notify_packages] sent={success_count} failed={len(errors)}")
    return {"success_count": success_count, "failed_count": len(errors), "errors": errors}


def send_bill(bill_id, whatsapp=None, *, now=None):
    """
    Send one bill with its payment link, to `whatsapp` or the student's number.
    Used for custom bills, which are not part of a round's payment request.
    The bill becomes `sent` on success; raises NotificationError otherwise.
    """
    now = now or timezone.now()
    try:
        bill = Bill.objects.select_related("student", "package").get(pk=bill_id)
    except Bill.DoesNotExist:
        raise NotFoundError(f"Bill {bill_id} not found", bill_id=bill_id)
    if bill.status == Bill.STATUS_PAID:
        raise StateError("Bill is already paid", bill_id=bill.id)

    recipient = whatsapp or (bill.student.whatsapp if bill.student else None)
    if not recipient:
        raise NotificationError("No WhatsApp number available for this bill", bill_id=bill.id)

    language = bill.student.language if bill.student else None
    body = render_bill_message(bill, language)
    if not send_message(recipient, body, MessageLog.TYPE_BILL, package=bill.package, now=now):
        raise NotificationError("Failed to send bill", bill_id=bill.id)

    Bill.objects.filter(pk=bill.pk).update(status=Bill.STATUS_SENT, sent_at=now, updated_at=now)
    bill.refresh_from_db()
    logger.info(f"[send_bill] bill_id={bill.id} custom={bill.is_custom}")
    return bill


def create_custom_bill(amount, *, student_id=None, teacher_id=None, package_id=None,
                       currency=None, description=None, bill_date=None, now=None):
    """Manual charge not tied to classes. Custom bills are never merged."""
    if amount is None:
        raise ValidationError("amount is required")
    try:
        amount = quantize(amount)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError("amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("amount must be a positive number", amount=str(amount))

    student = None
    if student_id:
        try:
            student = Student.objects.get(pk=student_id)
        except Student.DoesNotExist:
            raise NotFoundError(f"Student {student_id} not found", student_id=student_id)
    if teacher_id and not Teacher.objects.filter(pk=teacher_id).exists():
        raise NotFoundError(f"Teacher {teacher_id} not found", teacher_id=teacher_id)
    if package_id:
        _get_package(package_id)

    now = now or timezone.now()
    bill = Bill.objects.create(
        student=student,
        teacher_id=teacher_id,
        package_id=package_id,
        amount=amount,
        total_hours=ZERO,
        currency=currency or (student.currency if student else None) or settings.DEFAULT_CURRENCY,
        status=Bill.STATUS_PENDING,
        bill_date=bill_date or now.date(),
        description=description,
        is_custom=True,
    )
    logger.info(f"[custom_bill] bill_id={bill.id} student_id={student_id} amount={amount} {bill.currency}")
    return bill


def mark_bill_paid(bill_id, payment_method, *, payment_date=None, now=None):
    if not payment_method:
        raise ValidationError("payment_method is required")
    now = now or timezone.now()
    with transaction.atomic():
        try:
            bill = Bill.objects.select_for_update().get(pk=bill_id)
        except Bill.DoesNotExist:
            raise NotFoundError(f"Bill {bill_id} not found", bill_id=bill_id)
        if bill.status == Bill.STATUS_PAID:
            raise StateError("Bill is already paid", bill_id=bill.id)
        bill.status = Bill.STATUS_PAID
        bill.payment_method = payment_method
        bill.payment_date = payment_date or now.date()
        bill.save(update_fields=["status", "payment_method", "payment_date", "updated_at"])
    logger.info(f"[mark_bill_paid] bill_id={bill.id} method={payment_method}")
    return bill


def mark_package_paid(package_id, *, now=None):
    """
    Settle a round: every bill of the package becomes paid and the package is
    frozen (status paid), so its classes keep their linkage from now on.
    """
    now = now or timezone.now()
    package = _get_package(package_id)
    with student_ledger(package.student_id):
        package = Package.objects.select_for_update().get(pk=package.id)
        if package.status == Package.STATUS_PAID:
            raise StateError("Package is already paid", package_id=package.id)
        bills_updated = (
            Bill.objects.filter(package_id=package.id)
            .exclude(status=Bill.STATUS_PAID)
            .update(status=Bill.STATUS_PAID, payment_date=now.date(), updated_at=now)
        )
        package.status = Package.STATUS_PAID
        package.last_notification_sent = now
        package.notification_count = (package.notification_count or 0) + 1
        package.save(update_fields=["status", "last_notification_sent", "notification_count", "updated_at"])
    logger.info(f"[mark_package_paid] package_id={package.id} bills_updated={bills_updated}")
    return package
