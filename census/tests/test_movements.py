import pytest
from rest_framework.exceptions import NotFound

from census.constants import DISCHARGE_DECEASED
from census.exceptions import RecordConflict
from census.models import AuditEvent
from census.services import movements
from census.services.audit import DISCHARGE_UNDONE, PATIENT_DISCHARGED, PATIENT_TRANSFERRED
from census.services.records import apply_patches, empty_patient, empty_record

pytestmark = pytest.mark.django_db

DATE = '2024-03-10'


@pytest.fixture
def record():
    rec = empty_record(DATE)
    rec['beds']['R1'].update(patientName='Juan Pérez', rut='12.345.678-5', pathology='Neumonía', age='54')
    rec['beds']['H1C1'].update(patientName='Ana Tuki', rut='11.111.111-1')
    rec['beds']['H1C1']['clinicalCrib'] = dict(empty_patient('H1C1'), patientName='RN Tuki')
    return rec


def test_discharge_snapshots_and_clears_bed(record):
    rec = apply_patches(record, movements.add_discharge(record, 'R1', DISCHARGE_DECEASED, 'Domicilio', '10:30'))
    assert rec['beds']['R1']['patientName'] == ''
    entry = rec['discharges'][0]
    assert entry['status'] == DISCHARGE_DECEASED
    assert entry['bedName'] == 'R1' and entry['bedType'] == 'UTI'
    assert entry['diagnosis'] == 'Neumonía'
    assert entry['time'] == '10:30'
    assert entry['originalData']['rut'] == '12.345.678-5'
    assert AuditEvent.objects.filter(action=PATIENT_DISCHARGED, entity_id='R1').exists()


def test_discharge_empty_bed_conflicts(record):
    with pytest.raises(RecordConflict):
        movements.add_discharge(record, 'R2')


def test_nested_discharge_only_clears_crib(record):
    rec = apply_patches(record, movements.add_discharge(record, 'H1C1', is_nested=True))
    assert rec['beds']['H1C1']['patientName'] == 'Ana Tuki'
    assert rec['beds']['H1C1']['clinicalCrib'] is None
    assert rec['discharges'][0]['isNested'] is True


def test_undo_discharge_restores_patient(record):
    rec = apply_patches(record, movements.add_discharge(record, 'R1'))
    entry_id = rec['discharges'][0]['id']
    rec = apply_patches(rec, movements.undo_discharge(rec, entry_id))
    assert rec['beds']['R1']['patientName'] == 'Juan Pérez'
    assert rec['discharges'] == []
    assert AuditEvent.objects.filter(action=DISCHARGE_UNDONE, entity_id=entry_id).exists()


def test_undo_discharge_refused_when_bed_reused(record):
    rec = apply_patches(record, movements.add_discharge(record, 'R1'))
    entry_id = rec['discharges'][0]['id']
    rec['beds']['R1']['patientName'] = 'Nuevo Paciente'
    with pytest.raises(RecordConflict):
        movements.undo_discharge(rec, entry_id)
    assert [d['id'] for d in rec['discharges']] == [entry_id]


def test_undo_nested_discharge_needs_free_crib_slot(record):
    rec = apply_patches(record, movements.add_discharge(record, 'H1C1', is_nested=True))
    entry_id = rec['discharges'][0]['id']
    rec['beds']['H1C1']['clinicalCrib'] = dict(empty_patient('H1C1'), patientName='Otro RN')
    with pytest.raises(RecordConflict):
        movements.undo_discharge(rec, entry_id)
    rec['beds']['H1C1']['clinicalCrib'] = None
    restored = apply_patches(rec, movements.undo_discharge(rec, entry_id))
    assert restored['beds']['H1C1']['clinicalCrib']['patientName'] == 'RN Tuki'


def test_update_and_delete_discharge(record):
    rec = apply_patches(record, movements.add_discharge(record, 'R1'))
    entry_id = rec['discharges'][0]['id']
    rec = apply_patches(rec, movements.update_discharge(rec, entry_id, {'time': '12:00', 'patientName': 'X'}))
    assert rec['discharges'][0]['time'] == '12:00'
    assert rec['discharges'][0]['patientName'] == 'Juan Pérez'
    rec = apply_patches(rec, movements.delete_discharge(rec, entry_id))
    assert rec['discharges'] == []
    # deleting does not bring the patient back
    assert rec['beds']['R1']['patientName'] == ''
    with pytest.raises(NotFound):
        movements.delete_discharge(rec, entry_id)


def test_transfer_lifecycle(record):
    rec = apply_patches(record, movements.add_transfer(
        record, 'R1', 'Aerocardal', 'Otro', 'Hospital del Salvador', 'TENS', '09:15'))
    entry = rec['transfers'][0]
    assert entry['receivingCenterOther'] == 'Hospital del Salvador'
    assert rec['beds']['R1']['patientName'] == ''
    audit = AuditEvent.objects.get(action=PATIENT_TRANSFERRED)
    assert audit.details['receivingCenter'] == 'Hospital del Salvador'

    rec = apply_patches(rec, movements.update_transfer(rec, entry['id'], {'transferEscort': 'Enfermera'}))
    assert rec['transfers'][0]['transferEscort'] == 'Enfermera'

    rec['beds']['R1']['isBlocked'] = True
    with pytest.raises(RecordConflict):
        movements.undo_transfer(rec, entry['id'])
    rec['beds']['R1']['isBlocked'] = False
    rec = apply_patches(rec, movements.undo_transfer(rec, entry['id']))
    assert rec['beds']['R1']['patientName'] == 'Juan Pérez'
    assert rec['transfers'] == []


def test_cma(record):
    rec = apply_patches(record, movements.add_cma(record, {'patientName': 'Pedro', 'interventionType': 'Cirugía',
                                                           'unknown': 'ignored'}))
    entry = rec['cma'][0]
    assert entry['patientName'] == 'Pedro' and 'unknown' not in entry
    rec = apply_patches(rec, movements.update_cma(rec, entry['id'], {'specialty': 'Cirugía'}))
    assert rec['cma'][0]['specialty'] == 'Cirugía'
    rec = apply_patches(rec, movements.delete_cma(rec, entry['id']))
    assert rec['cma'] == []
