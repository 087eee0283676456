"""
Bed-state operations.

Every operation reads the current record document and returns the
dotted-path patches (``beds.R1.patientName``) that
:func:`census.services.records.patch_record` applies. Nothing here writes;
an operation that cannot be applied raises before any patch is produced,
so a rejected request leaves the record as it was.
"""
from __future__ import annotations

import copy
from typing import Any

from rest_framework.exceptions import NotFound, ValidationError

from census.constants import BED_MODE_BED, BED_MODE_CRIB, BEDS_BY_ID
from census.exceptions import RecordConflict
from census.services import audit
from census.services.cudyr import CATEGORIES, coerce_score
from census.services.records import empty_patient, is_occupied
from census.services.validation import process_field_value


STRUCTURAL_FIELDS = {'bedId', 'cudyr', 'clinicalCrib', 'isBlocked', 'blockedReason'}
PATIENT_FIELDS = frozenset(empty_patient('_').keys()) - STRUCTURAL_FIELDS

MOVE = 'move'
COPY = 'copy'


def _bed(record: dict, bed_id: str) -> dict[str, Any]:
    if bed_id not in BEDS_BY_ID and bed_id not in (record.get('beds') or {}):
        raise NotFound(f'Unknown bed {bed_id}')
    return (record.get('beds') or {}).get(bed_id) or empty_patient(bed_id)


def _process(field: str, value: Any) -> Any:
    if field not in PATIENT_FIELDS:
        raise ValidationError({field: 'Unknown patient field'})
    result = process_field_value(field, value)
    if not result.valid:
        raise ValidationError({field: result.error})
    return result.value


def _process_many(fields: dict[str, Any]) -> dict[str, Any]:
    return {field: _process(field, value) for field, value in fields.items()}


def _ensure_admittable(bed: dict, bed_id: str, values: dict[str, Any]) -> None:
    name = values.get('patientName')
    if isinstance(name, str) and name.strip() and bed.get('isBlocked'):
        raise RecordConflict(f'Bed {bed_id} is blocked')


def _audit_admission(user, record: dict, bed: dict, bed_id: str, values: dict[str, Any]) -> None:
    new_name = values.get('patientName')
    if isinstance(new_name, str) and new_name.strip() and not is_occupied(bed):
        rut = values.get('rut', bed.get('rut', ''))
        audit.log_patient_admission(user, bed_id, new_name, rut, record.get('date', ''))


# ---------------------------------------------------------------------------
# Patient fields
# ---------------------------------------------------------------------------
def _patient_patches(record: dict, bed_id: str, values: dict[str, Any], user) -> dict[str, Any]:
    bed = _bed(record, bed_id)
    _ensure_admittable(bed, bed_id, values)
    _audit_admission(user, record, bed, bed_id, values)
    patches = {f'beds.{bed_id}.{k}': v for k, v in values.items()}
    name = values.get('patientName')
    # an emptied bed takes its clinical crib with it
    if 'patientName' in values and not (isinstance(name, str) and name.strip()) \
            and isinstance(bed.get('clinicalCrib'), dict):
        patches[f'beds.{bed_id}.clinicalCrib'] = None
    return patches


def update_patient(record: dict, bed_id: str, field: str, value: Any, user=None) -> dict[str, Any]:
    return _patient_patches(record, bed_id, {field: _process(field, value)}, user)


def update_patient_multiple(record: dict, bed_id: str, fields: dict[str, Any], user=None) -> dict[str, Any]:
    return _patient_patches(record, bed_id, _process_many(fields), user)


def update_cudyr(record: dict, bed_id: str, field: str, value: Any) -> dict[str, Any]:
    _bed(record, bed_id)
    if field not in CATEGORIES:
        raise ValidationError({'field': f'CUDYR category must be one of {", ".join(CATEGORIES)}'})
    try:
        score = coerce_score(value)
    except ValueError as e:
        raise ValidationError({'value': str(e)})
    return {f'beds.{bed_id}.cudyr.{field}': score}


# ---------------------------------------------------------------------------
# Clinical crib
# ---------------------------------------------------------------------------
def _crib(bed: dict, bed_id: str) -> dict[str, Any]:
    crib = bed.get('clinicalCrib')
    if not isinstance(crib, dict):
        raise RecordConflict(f'Bed {bed_id} has no clinical crib')
    return crib


def create_clinical_crib(record: dict, bed_id: str) -> dict[str, Any]:
    bed = _bed(record, bed_id)
    if not is_occupied(bed):
        raise RecordConflict(f'Bed {bed_id} must be occupied to add a clinical crib')
    if isinstance(bed.get('clinicalCrib'), dict):
        raise RecordConflict(f'Bed {bed_id} already has a clinical crib')
    crib = empty_patient(bed_id)
    crib['bedMode'] = BED_MODE_CRIB
    return {f'beds.{bed_id}.clinicalCrib': crib}


def remove_clinical_crib(record: dict, bed_id: str) -> dict[str, Any]:
    bed = _bed(record, bed_id)
    _crib(bed, bed_id)
    return {f'beds.{bed_id}.clinicalCrib': None}


def update_clinical_crib(record: dict, bed_id: str, field: str, value: Any) -> dict[str, Any]:
    _crib(_bed(record, bed_id), bed_id)
    return {f'beds.{bed_id}.clinicalCrib.{field}': _process(field, value)}


def update_clinical_crib_multiple(record: dict, bed_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    _crib(_bed(record, bed_id), bed_id)
    return {f'beds.{bed_id}.clinicalCrib.{k}': v for k, v in _process_many(fields).items()}


# ---------------------------------------------------------------------------
# Whole-bed operations
# ---------------------------------------------------------------------------
def clear_patient(record: dict, bed_id: str, user=None) -> dict[str, Any]:
    bed = _bed(record, bed_id)
    if is_occupied(bed):
        audit.log_audit_event(user, audit.PATIENT_CLEARED, 'patient', bed_id,
                              {'patientName': bed.get('patientName')}, bed.get('rut'), record.get('date'))
    return {f'beds.{bed_id}': empty_patient(bed_id)}


def clear_all_beds(record: dict) -> dict[str, Any]:
    return {f'beds.{bed_id}': empty_patient(bed_id) for bed_id in (record.get('beds') or {})}


def move_or_copy_patient(record: dict, kind: str, source_id: str, target_id: str, user=None) -> dict[str, Any]:
    if kind not in (MOVE, COPY):
        raise ValidationError({'type': 'must be "move" or "copy"'})
    if source_id == target_id:
        raise ValidationError({'targetBedId': 'source and target must differ'})
    source = _bed(record, source_id)
    target = _bed(record, target_id)
    if not is_occupied(source):
        raise RecordConflict(f'Bed {source_id} is empty')
    if is_occupied(target):
        raise RecordConflict(f'Bed {target_id} is occupied')
    if target.get('isBlocked'):
        raise RecordConflict(f'Bed {target_id} is blocked')

    moved = copy.deepcopy(source)
    moved['bedId'] = target_id
    moved['location'] = target.get('location', '')
    patches: dict[str, Any] = {f'beds.{target_id}': moved}
    if kind == MOVE:
        patches[f'beds.{source_id}'] = empty_patient(source_id)
    audit.log_audit_event(user, audit.PATIENT_MODIFIED, 'patient', target_id,
                          {'operation': kind, 'from': source_id, 'to': target_id},
                          source.get('rut'), record.get('date'))
    return patches


def screen_document_patches(record: dict, patches: dict[str, Any], user=None) -> dict[str, Any]:
    """Run the ``beds.*`` paths of a generic document patch through the bed operations.

    Patient fields, ``cudyr.<category>`` and ``clinicalCrib.<field>`` are
    accepted and validated like their dedicated endpoints; whole-bed
    replacement and the block fields are refused. Other document keys pass
    through unchanged.
    """
    screened: dict[str, Any] = {}
    per_bed: dict[str, dict[str, Any]] = {}
    for path, value in patches.items():
        parts = path.split('.')
        if parts[0] != 'beds':
            screened[path] = value
            continue
        if len(parts) == 3 and parts[2] in PATIENT_FIELDS:
            per_bed.setdefault(parts[1], {})[parts[2]] = value
        elif len(parts) == 4 and parts[2] == 'cudyr':
            screened.update(update_cudyr(record, parts[1], parts[3], value))
        elif len(parts) == 4 and parts[2] == 'clinicalCrib':
            screened.update(update_clinical_crib(record, parts[1], parts[3], value))
        else:
            raise ValidationError({path: 'Use the bed endpoints for this change'})
    for bed_id, fields in per_bed.items():
        screened.update(update_patient_multiple(record, bed_id, fields, user=user))
    return screened


def toggle_block_bed(record: dict, bed_id: str, reason: str = '') -> dict[str, Any]:
    bed = _bed(record, bed_id)
    if bed.get('isBlocked'):
        return {f'beds.{bed_id}.isBlocked': False, f'beds.{bed_id}.blockedReason': ''}
    if is_occupied(bed):
        raise RecordConflict(f'Bed {bed_id} is occupied and cannot be blocked')
    return {f'beds.{bed_id}.isBlocked': True, f'beds.{bed_id}.blockedReason': reason or ''}


def toggle_extra_bed(record: dict, bed_id: str) -> dict[str, Any]:
    bed_def = BEDS_BY_ID.get(bed_id)
    if bed_def is None or not bed_def.is_extra:
        raise ValidationError({'bedId': f'{bed_id} is not an extra bed'})
    active = list(record.get('activeExtraBeds') or [])
    if bed_id in active:
        if is_occupied((record.get('beds') or {}).get(bed_id)):
            raise RecordConflict(f'Extra bed {bed_id} is occupied')
        active.remove(bed_id)
    else:
        active.append(bed_id)
    return {'activeExtraBeds': active}


def toggle_bed_mode(record: dict, bed_id: str) -> dict[str, Any]:
    bed = _bed(record, bed_id)
    mode = BED_MODE_BED if bed.get('bedMode') == BED_MODE_CRIB else BED_MODE_CRIB
    return {f'beds.{bed_id}.bedMode': mode}


def toggle_companion_crib(record: dict, bed_id: str) -> dict[str, Any]:
    bed = _bed(record, bed_id)
    return {f'beds.{bed_id}.hasCompanionCrib': not bed.get('hasCompanionCrib')}
