"""
Delivery log for outbound WhatsApp messages (payment requests, reminders).
"""
from django.db import models


class MessageLog(models.Model):
    TYPE_BILL = "bill"
    TYPE_REMINDER = "reminder"

    TYPE_CHOICES = [
        (TYPE_BILL, "Bill"),
        (TYPE_REMINDER, "Reminder"),
    ]

    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_SENT, "Sent"),
        (STATUS_FAILED, "Failed"),
    ]

    recipient = models.CharField(max_length=32, db_index=True)
    message_type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_index=True)
    package = models.ForeignKey(
        "packages.Package",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="message_logs",
    )
    provider = models.CharField(max_length=20, blank=True, default="")
    error = models.TextField(blank=True, null=True)
    sent_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "message_logs"
        verbose_name = "Message Log"
        verbose_name_plural = "Message Logs"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.message_type} -> {self.recipient} ({self.status})"
