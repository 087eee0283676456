"""
Database models for the ward census backend.

A census day is stored as one JSON document per date, mirroring the
document layout the front-end works with: beds keyed by bed id, lists of
movements and the handoff fields for both shifts. Users carry a role that
is resolved to permissions by :mod:`census.permissions`.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models

from census.constants import ROLE_CHOICES, ROLE_VIEWER


class User(AbstractUser):
    """Staff account with a single census role."""
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_VIEWER, db_index=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class DailyRecord(models.Model):
    """The census document for one day.

    ``date`` is the ``YYYY-MM-DD`` key. ``last_updated`` is the timestamp
    used for last-write-wins between the database copy and a local copy
    written while the database was unreachable.
    """
    date = models.CharField(max_length=10, primary_key=True)
    beds = models.JSONField(default=dict, blank=True)
    discharges = models.JSONField(default=list, blank=True)
    transfers = models.JSONField(default=list, blank=True)
    cma = models.JSONField(default=list, blank=True)
    nurses = models.JSONField(default=list, blank=True)
    active_extra_beds = models.JSONField(default=list, blank=True)
    # staff lists and handoff fields that have no dedicated column
    extra = models.JSONField(default=dict, blank=True)
    last_updated = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['date']

    def __str__(self) -> str:
        return f"DailyRecord({self.date})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    user_label = models.CharField(max_length=150, blank=True)
    action = models.CharField(max_length=64)
    entity_type = models.CharField(max_length=32, blank=True)
    entity_id = models.CharField(max_length=64, blank=True)
    patient_identifier = models.CharField(max_length=32, blank=True)
    record_date = models.CharField(max_length=10, blank=True, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['action', 'created_at'], name='census_audit_action_idx'),
            models.Index(fields=['entity_type', 'entity_id', 'created_at'], name='census_audit_entity_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_label or self.user_id}@{self.created_at:%F %T}"


class ConfigDocument(models.Model):
    """Named JSON configuration (e.g. the WhatsApp handoff group settings)."""
    name = models.CharField(max_length=64, primary_key=True)
    data = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name
