"""
Patient movements: discharges, transfers and day hospitalisation (CMA).

Discharges and transfers keep a snapshot of the patient (``originalData``)
so they can be undone. An undo only restores the patient when the bed, or
the crib slot for a nested entry, is still free; otherwise the entry stays
in place and a :class:`RecordConflict` is raised. Like the bed operations,
these functions return patches and never write.
"""
from __future__ import annotations

import copy
import uuid
from typing import Any, Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound

from census.constants import BEDS_BY_ID, DISCHARGE_ALIVE
from census.exceptions import RecordConflict
from census.services import audit
from census.services.records import empty_patient, is_occupied

DISCHARGE_EDITABLE = ('status', 'dischargeType', 'time')
TRANSFER_EDITABLE = ('evacuationMethod', 'receivingCenter', 'receivingCenterOther', 'transferEscort', 'time')
CMA_FIELDS = ('bedName', 'patientName', 'rut', 'age', 'diagnosis', 'specialty', 'interventionType')


def _now_hhmm() -> str:
    return timezone.localtime().strftime('%H:%M')


def _find(entries: list[dict], entry_id: str, kind: str) -> dict:
    for entry in entries:
        if entry.get('id') == entry_id:
            return entry
    raise NotFound(f'{kind} {entry_id} not found')


def _take_patient(record: dict, bed_id: str, is_nested: bool) -> tuple[dict, dict[str, Any]]:
    """Return the patient leaving ``bed_id`` and the patches that free its slot."""
    beds = record.get('beds') or {}
    if bed_id not in beds and bed_id not in BEDS_BY_ID:
        raise NotFound(f'Unknown bed {bed_id}')
    bed = beds.get(bed_id) or empty_patient(bed_id)
    if is_nested:
        crib = bed.get('clinicalCrib')
        if not is_occupied(crib):
            raise RecordConflict(f'Bed {bed_id} has no clinical crib patient')
        return crib, {f'beds.{bed_id}.clinicalCrib': None}
    if not is_occupied(bed):
        raise RecordConflict(f'Bed {bed_id} is empty')
    return bed, {f'beds.{bed_id}': empty_patient(bed_id)}


def _base_entry(bed_id: str, patient: dict, is_nested: bool, time: Optional[str]) -> dict[str, Any]:
    bed_def = BEDS_BY_ID.get(bed_id)
    return {
        'id': uuid.uuid4().hex,
        'bedId': bed_id,
        'bedName': bed_def.name if bed_def else bed_id,
        'bedType': bed_def.type if bed_def else '',
        'patientName': patient.get('patientName', ''),
        'rut': patient.get('rut', ''),
        'diagnosis': patient.get('pathology', ''),
        'time': time or _now_hhmm(),
        'isNested': is_nested,
        'originalData': copy.deepcopy(patient),
    }


def _restore(record: dict, entry: dict) -> dict[str, Any]:
    bed_id = entry['bedId']
    bed = (record.get('beds') or {}).get(bed_id) or empty_patient(bed_id)
    snapshot = copy.deepcopy(entry.get('originalData') or {})
    if entry.get('isNested'):
        if not is_occupied(bed):
            raise RecordConflict(f'Bed {bed_id} must be occupied to restore its clinical crib')
        if is_occupied(bed.get('clinicalCrib')):
            raise RecordConflict(f'The clinical crib of bed {bed_id} is occupied')
        return {f'beds.{bed_id}.clinicalCrib': snapshot}
    if is_occupied(bed):
        raise RecordConflict(f'Bed {bed_id} is occupied, the patient cannot be restored')
    if bed.get('isBlocked'):
        raise RecordConflict(f'Bed {bed_id} is blocked')
    snapshot['bedId'] = bed_id
    return {f'beds.{bed_id}': snapshot}


def _update_entry(entries: list[dict], entry_id: str, changes: dict[str, Any], editable, kind: str) -> list[dict]:
    entries = copy.deepcopy(entries)
    entry = _find(entries, entry_id, kind)
    entry.update({k: v for k, v in changes.items() if k in editable})
    return entries


# ---------------------------------------------------------------------------
# Discharges
# ---------------------------------------------------------------------------
def add_discharge(record: dict, bed_id: str, status: str = DISCHARGE_ALIVE, discharge_type: str = '',
                  time: Optional[str] = None, is_nested: bool = False, user=None) -> dict[str, Any]:
    patient, patches = _take_patient(record, bed_id, is_nested)
    entry = _base_entry(bed_id, patient, is_nested, time)
    entry['status'] = status
    entry['dischargeType'] = discharge_type
    patches['discharges'] = list(record.get('discharges') or []) + [entry]
    audit.log_patient_discharge(user, bed_id, entry['patientName'], entry['rut'], status, record.get('date', ''))
    return patches


def update_discharge(record: dict, entry_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    return {'discharges': _update_entry(record.get('discharges') or [], entry_id, changes,
                                        DISCHARGE_EDITABLE, 'Discharge')}


def delete_discharge(record: dict, entry_id: str) -> dict[str, Any]:
    entries = record.get('discharges') or []
    _find(entries, entry_id, 'Discharge')
    return {'discharges': [e for e in entries if e.get('id') != entry_id]}


def undo_discharge(record: dict, entry_id: str, user=None) -> dict[str, Any]:
    entries = record.get('discharges') or []
    entry = _find(entries, entry_id, 'Discharge')
    patches = _restore(record, entry)
    patches['discharges'] = [e for e in entries if e.get('id') != entry_id]
    audit.log_audit_event(user, audit.DISCHARGE_UNDONE, 'discharge', entry_id,
                          {'bedId': entry['bedId'], 'patientName': entry.get('patientName')},
                          entry.get('rut'), record.get('date'))
    return patches


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------
def add_transfer(record: dict, bed_id: str, evacuation_method: str = '', receiving_center: str = '',
                 receiving_center_other: str = '', transfer_escort: str = '',
                 time: Optional[str] = None, is_nested: bool = False, user=None) -> dict[str, Any]:
    patient, patches = _take_patient(record, bed_id, is_nested)
    entry = _base_entry(bed_id, patient, is_nested, time)
    entry.update({
        'evacuationMethod': evacuation_method,
        'receivingCenter': receiving_center,
        'receivingCenterOther': receiving_center_other,
        'transferEscort': transfer_escort,
    })
    patches['transfers'] = list(record.get('transfers') or []) + [entry]
    audit.log_patient_transfer(user, bed_id, entry['patientName'], entry['rut'],
                               receiving_center_other or receiving_center, record.get('date', ''))
    return patches


def update_transfer(record: dict, entry_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    return {'transfers': _update_entry(record.get('transfers') or [], entry_id, changes,
                                       TRANSFER_EDITABLE, 'Transfer')}


def delete_transfer(record: dict, entry_id: str) -> dict[str, Any]:
    entries = record.get('transfers') or []
    _find(entries, entry_id, 'Transfer')
    return {'transfers': [e for e in entries if e.get('id') != entry_id]}


def undo_transfer(record: dict, entry_id: str, user=None) -> dict[str, Any]:
    entries = record.get('transfers') or []
    entry = _find(entries, entry_id, 'Transfer')
    patches = _restore(record, entry)
    patches['transfers'] = [e for e in entries if e.get('id') != entry_id]
    audit.log_audit_event(user, audit.TRANSFER_UNDONE, 'transfer', entry_id,
                          {'bedId': entry['bedId'], 'patientName': entry.get('patientName')},
                          entry.get('rut'), record.get('date'))
    return patches


# ---------------------------------------------------------------------------
# CMA (day hospitalisation)
# ---------------------------------------------------------------------------
def add_cma(record: dict, data: dict[str, Any]) -> dict[str, Any]:
    entry = {'id': uuid.uuid4().hex}
    entry.update({k: data.get(k, '') for k in CMA_FIELDS})
    return {'cma': list(record.get('cma') or []) + [entry]}


def update_cma(record: dict, entry_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    return {'cma': _update_entry(record.get('cma') or [], entry_id, changes, CMA_FIELDS, 'CMA entry')}


def delete_cma(record: dict, entry_id: str) -> dict[str, Any]:
    entries = record.get('cma') or []
    _find(entries, entry_id, 'CMA entry')
    return {'cma': [e for e in entries if e.get('id') != entry_id]}
