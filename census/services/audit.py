"""
Audit trail for census operations.

Every entry is written to the ``AuditEvent`` table and mirrored into a
bounded list kept in the cache (newest first), so that recent activity is
still visible when the database is unreachable. Writing an audit entry
never raises: failures are logged and the calling request carries on.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Optional

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError
from django.utils import timezone

from census.models import AuditEvent

logger = logging.getLogger(__name__)

LOCAL_AUDIT_KEY = 'hanga_roa_audit_logs'

_held: ContextVar[Optional[list]] = ContextVar('census_audit_held', default=None)

PATIENT_ADMITTED = 'PATIENT_ADMITTED'
PATIENT_DISCHARGED = 'PATIENT_DISCHARGED'
PATIENT_TRANSFERRED = 'PATIENT_TRANSFERRED'
PATIENT_MODIFIED = 'PATIENT_MODIFIED'
PATIENT_CLEARED = 'PATIENT_CLEARED'
DAILY_RECORD_CREATED = 'DAILY_RECORD_CREATED'
DAILY_RECORD_DELETED = 'DAILY_RECORD_DELETED'
DISCHARGE_UNDONE = 'DISCHARGE_UNDONE'
TRANSFER_UNDONE = 'TRANSFER_UNDONE'
CENSUS_EMAIL_SENT = 'CENSUS_EMAIL_SENT'
USER_LOGIN = 'USER_LOGIN'

AUDIT_ACTIONS = (
    PATIENT_ADMITTED, PATIENT_DISCHARGED, PATIENT_TRANSFERRED, PATIENT_MODIFIED,
    PATIENT_CLEARED, DAILY_RECORD_CREATED, DAILY_RECORD_DELETED, DISCHARGE_UNDONE,
    TRANSFER_UNDONE, CENSUS_EMAIL_SENT, USER_LOGIN,
)


def mask_rut(rut: Optional[str]) -> str:
    """Keep the first digits and the check digit: ``12.345.678-9`` -> ``123***-9``."""
    if not rut:
        return ''
    clean = rut.replace('.', '').strip()
    if '-' in clean:
        body, dv = clean.rsplit('-', 1)
        return f"{body[:3]}***-{dv}"
    return f"{clean[:3]}***"


def _user_label(user) -> str:
    if user is None:
        return 'anonymous'
    if isinstance(user, str):
        return user
    return getattr(user, 'email', '') or getattr(user, 'username', '') or str(user)


def get_local_audit_logs() -> list[dict[str, Any]]:
    return list(cache.get(LOCAL_AUDIT_KEY) or [])


def clear_local_audit_logs() -> None:
    cache.delete(LOCAL_AUDIT_KEY)


def _push_local(entry: dict[str, Any]) -> None:
    max_entries = getattr(settings, 'AUDIT_LOCAL_MAX_ENTRIES', 1000)
    logs = [entry] + get_local_audit_logs()
    cache.set(LOCAL_AUDIT_KEY, logs[:max_entries], None)


def log_audit_event(
    user,
    action: str,
    entity_type: str,
    entity_id: str,
    details: Optional[dict[str, Any]] = None,
    patient_rut: Optional[str] = None,
    record_date: Optional[str] = None,
) -> dict[str, Any]:
    """Record ``action`` and return the local entry that was stored."""
    entry = {
        'id': uuid.uuid4().hex,
        'timestamp': timezone.now().isoformat(),
        'userId': _user_label(user),
        'action': action,
        'entityType': entity_type,
        'entityId': str(entity_id or ''),
        'details': details or {},
    }
    if patient_rut:
        entry['patientIdentifier'] = mask_rut(patient_rut)
    if record_date:
        entry['recordDate'] = record_date

    db_user = user if getattr(user, 'pk', None) else None
    held = _held.get()
    if held is not None:
        held.append((entry, db_user))
    else:
        _store(entry, db_user)
    return entry


def _store(entry: dict[str, Any], db_user) -> None:
    action = entry['action']
    try:
        _push_local(entry)
    except Exception:  # cache backend down, nothing else to fall back to
        logger.warning('could not store local audit entry %s', action, exc_info=True)

    try:
        AuditEvent.objects.create(
            user=db_user,
            user_label=entry['userId'][:150],
            action=action,
            entity_type=entry['entityType'] or '',
            entity_id=entry['entityId'][:64],
            patient_identifier=entry.get('patientIdentifier', ''),
            record_date=entry.get('recordDate', ''),
            details=entry['details'],
        )
    except DatabaseError:
        logger.error('failed to persist audit event %s for %s', action, entry['entityId'], exc_info=True)


@contextmanager
def held_until_success():
    """Hold audit entries logged inside the block; store them only if it exits cleanly.

    Used around a record write so a refused or failed change leaves no trail.
    """
    batch: list[tuple[dict[str, Any], Any]] = []
    token = _held.set(batch)
    try:
        yield batch
    finally:
        _held.reset(token)
    for entry, db_user in batch:
        _store(entry, db_user)


def log_patient_admission(user, bed_id: str, patient_name: str, rut: str, record_date: str) -> dict[str, Any]:
    return log_audit_event(user, PATIENT_ADMITTED, 'patient', bed_id,
                           {'patientName': patient_name, 'bedId': bed_id}, rut, record_date)


def log_patient_discharge(user, bed_id: str, patient_name: str, rut: str, status: str, record_date: str) -> dict[str, Any]:
    return log_audit_event(user, PATIENT_DISCHARGED, 'patient', bed_id,
                           {'patientName': patient_name, 'status': status, 'bedId': bed_id}, rut, record_date)


def log_patient_transfer(user, bed_id: str, patient_name: str, rut: str, receiving_center: str, record_date: str) -> dict[str, Any]:
    return log_audit_event(user, PATIENT_TRANSFERRED, 'patient', bed_id,
                           {'patientName': patient_name, 'receivingCenter': receiving_center, 'bedId': bed_id},
                           rut, record_date)
