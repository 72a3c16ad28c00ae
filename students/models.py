"""
Student and Teacher records.
Full CRUD lives elsewhere; these models carry only what the package and billing
engine reads: contact number, language and currency for payment requests,
the teacher's hourly rate as a price fallback.
"""
from django.db import models


class Student(models.Model):
    """Student: owns package rounds, classes and bills."""
    STATUS_ACTIVE = 'active'
    STATUS_PAUSED = 'paused'
    STATUS_STOPPED = 'stopped'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_PAUSED, 'Paused'),
        (STATUS_STOPPED, 'Stopped'),
    ]

    LANGUAGE_CHOICES = [
        ('ar', 'Arabic'),
        ('en', 'English'),
        ('fr', 'French'),
    ]

    full_name = models.CharField(max_length=255, db_index=True)
    email = models.EmailField(blank=True, null=True)
    whatsapp = models.CharField(max_length=32, blank=True, null=True, help_text="E.164, e.g. +33612345678")
    currency = models.CharField(max_length=3, blank=True, null=True)
    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default='ar')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students'
        verbose_name = 'Student'
        verbose_name_plural = 'Students'
        ordering = ['full_name']

    def __str__(self):
        return self.full_name


class Teacher(models.Model):
    """Teacher: hourly_rate is the bill price when a package has no hour_price."""
    full_name = models.CharField(max_length=255)
    whatsapp = models.CharField(max_length=32, blank=True, null=True)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'teachers'
        verbose_name = 'Teacher'
        verbose_name_plural = 'Teachers'
        ordering = ['full_name']

    def __str__(self):
        return self.full_name
