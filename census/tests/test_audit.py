import pytest
from django.db import DatabaseError
from django.test import override_settings

from census.models import AuditEvent
from census.services import audit

pytestmark = pytest.mark.django_db


def test_mask_rut():
    assert audit.mask_rut('12.345.678-9') == '123***-9'
    assert audit.mask_rut('AB1234567') == 'AB1***'
    assert audit.mask_rut('') == ''


def test_event_is_persisted_and_mirrored(nurse):
    entry = audit.log_patient_admission(nurse, 'R1', 'Juan Pérez', '12.345.678-5', '2024-03-10')
    assert entry['action'] == audit.PATIENT_ADMITTED
    assert entry['userId'] == 'nurse1'
    assert entry['patientIdentifier'] == '123***-5'
    assert entry['recordDate'] == '2024-03-10'
    assert audit.get_local_audit_logs()[0] == entry

    ev = AuditEvent.objects.get()
    assert ev.user == nurse
    assert ev.entity_id == 'R1'
    assert ev.patient_identifier == '123***-5'
    assert ev.details == {'patientName': 'Juan Pérez', 'bedId': 'R1'}


def test_entries_without_patient_omit_identifier():
    entry = audit.log_audit_event(None, audit.DAILY_RECORD_CREATED, 'dailyRecord', '2024-03-10')
    assert 'patientIdentifier' not in entry
    assert entry['userId'] == 'anonymous'


def test_local_buffer_is_newest_first_and_bounded():
    with override_settings(AUDIT_LOCAL_MAX_ENTRIES=3):
        for i in range(5):
            audit.log_audit_event('system', audit.PATIENT_MODIFIED, 'patient', f'R{i}')
    logs = audit.get_local_audit_logs()
    assert [e['entityId'] for e in logs] == ['R4', 'R3', 'R2']
    assert AuditEvent.objects.count() == 5
    audit.clear_local_audit_logs()
    assert audit.get_local_audit_logs() == []


def test_default_buffer_cap_is_1000(settings):
    assert settings.AUDIT_LOCAL_MAX_ENTRIES == 1000


def test_persistence_failure_is_not_raised(monkeypatch):
    def broken(**kwargs):
        raise DatabaseError('down')

    monkeypatch.setattr(AuditEvent.objects, 'create', broken)
    entry = audit.log_audit_event(None, audit.USER_LOGIN, 'user', 'x')
    assert audit.get_local_audit_logs()[0]['id'] == entry['id']
