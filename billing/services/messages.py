"""
Payment-request message rendering. Wording lives in
billing/templates/billing/package_bill_<lang>.txt (whole round) and
billing/templates/billing/bill_<lang>.txt (one bill).
"""
from django.conf import settings
from django.template.loader import render_to_string

from billing.models import Bill
from billing.services.tokens import generate_payment_token, payment_url

SUPPORTED_LANGUAGES = ("ar", "en", "fr")
DEFAULT_LANGUAGE = "ar"


def normalize_language(language):
    language = (language or "").strip().lower()
    return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def payment_links(bills):
    """One URL per unpaid bill, issuing tokens where missing."""
    links = []
    for bill in bills:
        if bill.status not in Bill.UNPAID_STATUSES:
            continue
        links.append(payment_url(generate_payment_token(bill)))
    return links


def render_package_bill_message(package, bills, summary, language=DEFAULT_LANGUAGE):
    context = {
        "academy_name": getattr(settings, "ACADEMY_NAME", ""),
        "student_name": package.student.full_name,
        "start_date": package.start_date,
        "end_date": package.updated_at.date() if package.updated_at else None,
        "total_hours": summary["total_hours"],
        "total_amount": summary["total_amount"],
        "unpaid_amount": summary["unpaid_amount"],
        "currency": summary["currency"],
        "payment_links": payment_links(bills),
        "support_phone": getattr(settings, "WHATSAPP_SUPPORT_PHONE", ""),
    }
    template = f"billing/package_bill_{normalize_language(language)}.txt"
    return render_to_string(template, context).strip()


def render_bill_message(bill, language=DEFAULT_LANGUAGE):
    """Single-bill request (custom or class bill) with its own payment link."""
    context = {
        "academy_name": getattr(settings, "ACADEMY_NAME", ""),
        "student_name": bill.student.full_name if bill.student else "Customer",
        "is_custom": bill.is_custom,
        "invoice_number": bill.invoice_number,
        "bill_date": bill.bill_date,
        "amount": bill.amount,
        "currency": bill.currency,
        "description": bill.description or "",
        "payment_url": payment_url(generate_payment_token(bill)),
    }
    template = f"billing/bill_{normalize_language(language)}.txt"
    return render_to_string(template, context).strip()
