"""
Bill model: an accumulating invoice tied to a package.
System bills merge every billable class of a package into one pending bill;
custom bills are manual charges and are never merged.
"""
from django.db import models
from students.models import Student, Teacher


class Bill(models.Model):
    STATUS_PENDING = "pending"
    STATUS_SENT = "sent"
    STATUS_PAID = "paid"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_SENT, "Sent"),
        (STATUS_PAID, "Paid"),
    ]

    UNPAID_STATUSES = (STATUS_PENDING, STATUS_SENT)

    package = models.ForeignKey(
        "packages.Package",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bills",
    )
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="bills",
    )
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bills",
    )
    # Ordered ids of the classes merged into this bill, append-only.
    class_ids = models.JSONField(default=list, blank=True)
    total_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    is_custom = models.BooleanField(default=False, db_index=True)
    description = models.TextField(blank=True, null=True)
    payment_token = models.CharField(max_length=64, unique=True, null=True, blank=True)
    bill_date = models.DateField(db_index=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    payment_date = models.DateField(null=True, blank=True)
    payment_method = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "bills"
        verbose_name = "Bill"
        verbose_name_plural = "Bills"
        ordering = ["-bill_date", "-created_at"]
        indexes = [
            models.Index(fields=["package", "student", "status", "is_custom"], name="bills_pending_lookup_idx"),
        ]

    def __str__(self):
        return f"Bill #{self.pk} {self.amount} {self.currency} ({self.status})"

    @property
    def invoice_number(self):
        return f"#{self.pk:06d}" if self.pk else ""

    def includes_class(self, class_id):
        return int(class_id) in [int(cid) for cid in (self.class_ids or [])]
