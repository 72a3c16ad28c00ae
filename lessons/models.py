"""
ClassRecord: one scheduled or completed tutoring session.
package is assigned only when the status resolves to a billable/terminal outcome;
waiting_list parks a class until a new or reactivated round can absorb it.
"""
from django.conf import settings
from django.db import models
from core.utils import minutes_to_hours
from students.models import Student, Teacher


class ClassRecord(models.Model):
    STATUS_PENDING = "pending"
    STATUS_ATTENDED = "attended"
    STATUS_CANCELLED_BY_STUDENT = "cancelled_by_student"
    STATUS_CANCELLED_BY_TEACHER = "cancelled_by_teacher"
    STATUS_ABSENT_STUDENT = "absent_student"
    STATUS_WAITING_LIST = "waiting_list"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ATTENDED, "Attended"),
        (STATUS_CANCELLED_BY_STUDENT, "Cancelled by student"),
        (STATUS_CANCELLED_BY_TEACHER, "Cancelled by teacher"),
        (STATUS_ABSENT_STUDENT, "Student absent"),
        (STATUS_WAITING_LIST, "Waiting list"),
    ]

    CANCELLED_STATUSES = (STATUS_CANCELLED_BY_STUDENT, STATUS_CANCELLED_BY_TEACHER)

    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name="classes",
    )
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.CASCADE,
        related_name="classes",
    )
    package = models.ForeignKey(
        "packages.Package",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="classes",
    )
    class_date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField(null=True, blank=True)
    duration = models.PositiveIntegerField(help_text="Minutes")
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_classes",
    )
    cancellation_reason = models.TextField(blank=True, null=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "classes"
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        ordering = ["class_date", "start_time"]
        indexes = [
            models.Index(fields=["student", "status", "class_date"], name="classes_student_status_idx"),
            models.Index(fields=["package", "status"], name="classes_package_status_idx"),
        ]

    def __str__(self):
        return f"{self.student} {self.class_date} {self.start_time} ({self.status})"

    @property
    def duration_hours(self):
        return minutes_to_hours(self.duration)

    @property
    def counts_towards_limit(self):
        """Teacher cancellations never consume package hours."""
        return self.status != self.STATUS_CANCELLED_BY_TEACHER
