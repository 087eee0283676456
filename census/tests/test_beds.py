import pytest
from rest_framework.exceptions import NotFound, ValidationError

from census.constants import BED_MODE_BED, BED_MODE_CRIB
from census.exceptions import RecordConflict
from census.models import AuditEvent
from census.services import beds
from census.services.audit import PATIENT_ADMITTED, PATIENT_CLEARED, PATIENT_MODIFIED, get_local_audit_logs
from census.services.records import apply_patches, empty_patient, empty_record

DATE = '2024-03-10'


@pytest.fixture
def record():
    rec = empty_record(DATE)
    rec['beds']['R1'].update(patientName='Juan Pérez', rut='12.345.678-5', pathology='Neumonía')
    return rec


def test_update_patient_formats_and_audits_admission(record, db):
    patches = beds.update_patient(record, 'R2', 'patientName', 'maria tepano')
    assert patches == {'beds.R2.patientName': 'Maria Tepano'}
    assert AuditEvent.objects.filter(action=PATIENT_ADMITTED, entity_id='R2').count() == 1
    # renaming an occupied bed is not an admission
    beds.update_patient(record, 'R1', 'patientName', 'Juan Pablo Pérez')
    assert AuditEvent.objects.filter(action=PATIENT_ADMITTED).count() == 1


def test_update_patient_rejects_future_admission(record):
    with pytest.raises(ValidationError):
        beds.update_patient(record, 'R1', 'admissionDate', '2999-01-01')


def test_update_patient_rejects_unknown_field_and_bed(record):
    with pytest.raises(ValidationError):
        beds.update_patient(record, 'R1', 'clinicalCrib', {})
    with pytest.raises(NotFound):
        beds.update_patient(record, 'Z9', 'age', '3')


def test_update_multiple_formats_rut(record, db):
    patches = beds.update_patient_multiple(record, 'R3', {'patientName': 'ana  tuki', 'rut': '123456785'})
    assert patches == {'beds.R3.patientName': 'Ana Tuki', 'beds.R3.rut': '12.345.678-5'}
    entry = get_local_audit_logs()[0]
    assert entry['action'] == PATIENT_ADMITTED
    assert entry['patientIdentifier'] == '123***-5'


def test_cannot_admit_into_blocked_bed(record):
    record['beds']['R2']['isBlocked'] = True
    with pytest.raises(RecordConflict):
        beds.update_patient(record, 'R2', 'patientName', 'Alguien')


def test_update_cudyr(record):
    assert beds.update_cudyr(record, 'R1', 'D', True) == {'beds.R1.cudyr.D': 1}
    assert beds.update_cudyr(record, 'R1', 'C', '3') == {'beds.R1.cudyr.C': 3}
    with pytest.raises(ValidationError):
        beds.update_cudyr(record, 'R1', 'X', 1)
    with pytest.raises(ValidationError):
        beds.update_cudyr(record, 'R1', 'C', 7)


def test_clinical_crib_lifecycle(record):
    with pytest.raises(RecordConflict):
        beds.create_clinical_crib(record, 'R2')
    rec = apply_patches(record, beds.create_clinical_crib(record, 'R1'))
    assert rec['beds']['R1']['clinicalCrib']['bedMode'] == BED_MODE_CRIB
    with pytest.raises(RecordConflict):
        beds.create_clinical_crib(rec, 'R1')

    rec = apply_patches(rec, beds.update_clinical_crib(rec, 'R1', 'patientName', 'rn pérez'))
    assert rec['beds']['R1']['clinicalCrib']['patientName'] == 'Rn Pérez'
    rec = apply_patches(rec, beds.update_clinical_crib_multiple(rec, 'R1', {'age': '2d', 'rut': ''}))
    assert rec['beds']['R1']['clinicalCrib']['age'] == '2d'

    rec = apply_patches(rec, beds.remove_clinical_crib(rec, 'R1'))
    assert rec['beds']['R1']['clinicalCrib'] is None
    with pytest.raises(RecordConflict):
        beds.update_clinical_crib(rec, 'R1', 'age', '1')


def test_clear_patient_and_all(record, db):
    patches = beds.clear_patient(record, 'R1')
    assert patches == {'beds.R1': empty_patient('R1')}
    assert AuditEvent.objects.filter(action=PATIENT_CLEARED).exists()
    cleared = apply_patches(record, beds.clear_all_beds(record))
    assert not any(p['patientName'] for p in cleared['beds'].values())


def test_move_and_copy(record, db):
    moved = apply_patches(record, beds.move_or_copy_patient(record, 'move', 'R1', 'R2'))
    assert moved['beds']['R2']['patientName'] == 'Juan Pérez'
    assert moved['beds']['R2']['bedId'] == 'R2'
    assert moved['beds']['R1']['patientName'] == ''

    copied = apply_patches(record, beds.move_or_copy_patient(record, 'copy', 'R1', 'R2'))
    assert copied['beds']['R1']['patientName'] == copied['beds']['R2']['patientName'] == 'Juan Pérez'
    assert AuditEvent.objects.filter(action=PATIENT_MODIFIED).count() == 2


def test_move_refusals(record):
    with pytest.raises(RecordConflict):
        beds.move_or_copy_patient(record, 'move', 'R2', 'R3')
    record['beds']['R3']['isBlocked'] = True
    with pytest.raises(RecordConflict):
        beds.move_or_copy_patient(record, 'move', 'R1', 'R3')
    record['beds']['R4']['patientName'] = 'Otro'
    with pytest.raises(RecordConflict):
        beds.move_or_copy_patient(record, 'move', 'R1', 'R4')
    with pytest.raises(ValidationError):
        beds.move_or_copy_patient(record, 'swap', 'R1', 'R2')


def test_toggle_block(record):
    with pytest.raises(RecordConflict):
        beds.toggle_block_bed(record, 'R1')
    blocked = apply_patches(record, beds.toggle_block_bed(record, 'R2', 'Aislamiento'))
    assert blocked['beds']['R2']['isBlocked'] is True
    assert blocked['beds']['R2']['blockedReason'] == 'Aislamiento'
    unblocked = apply_patches(blocked, beds.toggle_block_bed(blocked, 'R2'))
    assert unblocked['beds']['R2']['isBlocked'] is False
    assert unblocked['beds']['R2']['blockedReason'] == ''


def test_toggle_extra_bed(record):
    rec = apply_patches(record, beds.toggle_extra_bed(record, 'E2'))
    assert rec['activeExtraBeds'] == ['E2']
    rec['beds']['E2']['patientName'] = 'Extra'
    with pytest.raises(RecordConflict):
        beds.toggle_extra_bed(rec, 'E2')
    rec['beds']['E2']['patientName'] = ''
    assert beds.toggle_extra_bed(rec, 'E2') == {'activeExtraBeds': []}
    with pytest.raises(ValidationError):
        beds.toggle_extra_bed(rec, 'R1')


def test_toggle_mode_and_companion(record):
    assert beds.toggle_bed_mode(record, 'NEO1') == {'beds.NEO1.bedMode': BED_MODE_CRIB}
    record['beds']['NEO1']['bedMode'] = BED_MODE_CRIB
    assert beds.toggle_bed_mode(record, 'NEO1') == {'beds.NEO1.bedMode': BED_MODE_BED}
    assert beds.toggle_companion_crib(record, 'R1') == {'beds.R1.hasCompanionCrib': True}


def test_block_fields_only_change_through_toggle(record):
    with pytest.raises(ValidationError):
        beds.update_patient(record, 'R1', 'isBlocked', True)
    with pytest.raises(ValidationError):
        beds.update_patient_multiple(record, 'R1', {'age': '40', 'blockedReason': 'x'})


def test_emptying_a_bed_drops_its_crib(record):
    record = apply_patches(record, beds.create_clinical_crib(record, 'R1'))
    patches = beds.update_patient(record, 'R1', 'patientName', '  ')
    assert patches['beds.R1.clinicalCrib'] is None
    patches = beds.update_patient_multiple(record, 'R1', {'patientName': '', 'rut': ''})
    assert patches['beds.R1.clinicalCrib'] is None
    # renaming keeps it
    assert 'beds.R1.clinicalCrib' not in beds.update_patient(record, 'R1', 'patientName', 'Juan P')


def test_screen_document_patches(record, db):
    record['beds']['R2']['isBlocked'] = True
    passthrough = beds.screen_document_patches(record, {'nurses': ['Ana'], 'beds.R1.cudyr.C': True})
    assert passthrough == {'nurses': ['Ana'], 'beds.R1.cudyr.C': 1}

    screened = beds.screen_document_patches(record, {'beds.R3.patientName': 'pedro hotu', 'beds.R3.age': '7'})
    assert screened == {'beds.R3.patientName': 'Pedro Hotu', 'beds.R3.age': '7'}

    with pytest.raises(RecordConflict):
        beds.screen_document_patches(record, {'beds.R2.patientName': 'Intruso'})
    with pytest.raises(ValidationError):
        beds.screen_document_patches(record, {'beds.R1.admissionDate': '2999-01-01'})
    for path in ('beds.R1', 'beds.R1.isBlocked', 'beds.R1.cudyr', 'beds.R1.clinicalCrib'):
        with pytest.raises(ValidationError):
            beds.screen_document_patches(record, {path: {}})
    with pytest.raises(RecordConflict):
        beds.screen_document_patches(record, {'beds.R1.clinicalCrib.patientName': 'Rn'})
