"""
Row builders shared by the test suites.
"""
from datetime import date, time
from decimal import Decimal

from billing.models import Bill
from lessons.models import ClassRecord
from packages.models import Package
from students.models import Student, Teacher


def make_student(full_name="Student One", whatsapp=None, currency="USD", language="en"):
    return Student.objects.create(
        full_name=full_name,
        whatsapp=whatsapp,
        currency=currency,
        language=language,
    )


def make_teacher(full_name="Teacher One", hourly_rate="15.00"):
    return Teacher.objects.create(full_name=full_name, hourly_rate=Decimal(hourly_rate), currency="USD")


def make_package(student, round_number=1, total_hours="10.00", status=Package.STATUS_ACTIVE,
                 remaining_hours=None, hour_price="20.00", currency="USD", **extra):
    total = Decimal(total_hours) if total_hours is not None else None
    if remaining_hours is None:
        remaining = total
    else:
        remaining = Decimal(remaining_hours)
    return Package.objects.create(
        student=student,
        round_number=round_number,
        start_date=date(2026, 1, 1),
        total_hours=total,
        remaining_hours=remaining,
        hour_price=Decimal(hour_price),
        currency=currency,
        status=status,
        **extra,
    )


def make_class(student, teacher, day, duration=60, status=ClassRecord.STATUS_PENDING, package=None,
               start=time(10, 0)):
    """day: day of January 2026."""
    return ClassRecord.objects.create(
        student=student,
        teacher=teacher,
        package=package,
        class_date=date(2026, 1, day),
        start_time=start,
        duration=duration,
        status=status,
    )


def make_bill(package, amount, status=Bill.STATUS_PENDING, is_custom=False, class_ids=None, total_hours="0"):
    return Bill.objects.create(
        package=package,
        student=package.student,
        class_ids=class_ids or [],
        total_hours=Decimal(total_hours),
        amount=Decimal(amount),
        currency=package.currency,
        status=status,
        is_custom=is_custom,
        bill_date=date(2026, 1, 31),
    )
