"""
Package model: one prepaid round of tutoring hours for a student.
Rounds are numbered 1, 2, 3... per student. At most one round is active at a time.
A paid round is frozen: its class linkage is history and never reassigned.
"""
from django.db import models
from students.models import Student


class Package(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_FINISHED = "finished"
    STATUS_PAID = "paid"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_FINISHED, "Finished (pending payment)"),
        (STATUS_PAID, "Paid"),
    ]

    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name="packages",
    )
    round_number = models.PositiveIntegerField(default=1)
    start_date = models.DateField(db_index=True)
    total_hours = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    # Null means a legacy class-count package tracked by remaining_classes.
    remaining_hours = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    # DEPRECATED: class-count tracking, kept for packages created before hour tracking.
    total_classes = models.PositiveIntegerField(default=0)
    remaining_classes = models.PositiveIntegerField(default=0)
    hour_price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default="USD")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    last_notification_sent = models.DateTimeField(null=True, blank=True)
    notification_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "packages"
        verbose_name = "Package"
        verbose_name_plural = "Packages"
        ordering = ["student", "round_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "round_number"],
                name="unique_student_package_round",
            ),
            models.UniqueConstraint(
                fields=["student"],
                condition=models.Q(status="active"),
                name="unique_active_package_per_student",
            ),
        ]
        indexes = [
            models.Index(fields=["student", "status"], name="packages_student_status_idx"),
        ]

    def __str__(self):
        return f"{self.student} - round {self.round_number} ({self.status})"

    @property
    def is_frozen(self):
        return self.status == self.STATUS_PAID

    @property
    def tracks_hours(self):
        return self.remaining_hours is not None
