"""
Nursing and medical shift handoff.

Editing the day-shift nursing note of a bed also writes the night-shift
note, so the night starts from what the day left; the night note can then
diverge on its own. Free text is cleaned with bleach before storage.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import bleach
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from census.constants import BEDS_BY_ID
from census.exceptions import RecordConflict
from census.services.records import is_occupied

DAY = 'day'
NIGHT = 'night'
SHIFTS = (DAY, NIGHT)

STAFF_ROLES = ('delivers', 'receives')


def clean_text(value: Optional[str]) -> str:
    return bleach.clean((value or '').strip(), tags=[], strip=True)


def _clean_names(names) -> list[str]:
    return [n for n in (clean_text(str(x)) for x in (names or [])) if n]


def _shift(shift: str) -> str:
    if shift not in SHIFTS:
        raise ValidationError({'shift': 'must be "day" or "night"'})
    return shift


def _prefix(record: dict, bed_id: str, is_nested: bool) -> str:
    beds = record.get('beds') or {}
    if bed_id not in beds and bed_id not in BEDS_BY_ID:
        raise ValidationError({'bedId': f'Unknown bed {bed_id}'})
    if is_nested:
        if not isinstance((beds.get(bed_id) or {}).get('clinicalCrib'), dict):
            raise RecordConflict(f'Bed {bed_id} has no clinical crib')
        return f'beds.{bed_id}.clinicalCrib'
    return f'beds.{bed_id}'


def get_shift_schedule(date: str) -> dict[str, Any]:
    day = datetime.strptime(date[:10], '%Y-%m-%d').date()
    return {
        'dayStart': '08:00',
        'dayEnd': '20:00',
        'nightStart': '20:00',
        'nightEnd': '08:00',
        'isWeekend': day.weekday() >= 5,
    }


# ---------------------------------------------------------------------------
# Nursing
# ---------------------------------------------------------------------------
def update_nursing_note(record: dict, bed_id: str, shift: str, value: str, is_nested: bool = False) -> dict[str, Any]:
    prefix = _prefix(record, bed_id, is_nested)
    text = clean_text(value)
    if _shift(shift) == DAY:
        return {f'{prefix}.handoffNoteDayShift': text, f'{prefix}.handoffNoteNightShift': text}
    return {f'{prefix}.handoffNoteNightShift': text}


def update_checklist(record: dict, shift: str, field: str, value: Any) -> dict[str, Any]:
    key = 'handoffDayChecklist' if _shift(shift) == DAY else 'handoffNightChecklist'
    if isinstance(value, str):
        value = clean_text(value)
    return {f'{key}.{field}': value}


def update_novedades(record: dict, shift: str, text: str) -> dict[str, Any]:
    key = 'handoffNovedadesDayShift' if _shift(shift) == DAY else 'handoffNovedadesNightShift'
    return {key: clean_text(text)}


def update_handoff_staff(record: dict, shift: str, role: str, names) -> dict[str, Any]:
    if role not in STAFF_ROLES:
        raise ValidationError({'role': 'must be "delivers" or "receives"'})
    shift_key = 'Day' if _shift(shift) == DAY else 'Night'
    return {f'handoff{shift_key}{role.capitalize()}': _clean_names(names)}


def update_tens(record: dict, shift: str, names) -> dict[str, Any]:
    key = 'tensDayShift' if _shift(shift) == DAY else 'tensNightShift'
    return {key: _clean_names(names)}


def update_nurses(record: dict, shift: str, names) -> dict[str, Any]:
    key = 'nursesDayShift' if _shift(shift) == DAY else 'nursesNightShift'
    cleaned = _clean_names(names)
    patches: dict[str, Any] = {key: cleaned}
    # the census sheet signs with the night shift
    if key == 'nursesNightShift':
        patches['nurses'] = cleaned
    return patches


# ---------------------------------------------------------------------------
# Medical
# ---------------------------------------------------------------------------
def update_medical_note(record: dict, bed_id: str, value: str, is_nested: bool = False) -> dict[str, Any]:
    prefix = _prefix(record, bed_id, is_nested)
    return {f'{prefix}.medicalHandoffNote': clean_text(value)}


def set_medical_doctor(record: dict, doctor_name: str) -> dict[str, Any]:
    return {'medicalHandoffDoctor': clean_text(doctor_name)}


def mark_medical_handoff_sent(record: dict, doctor_name: Optional[str] = None) -> dict[str, Any]:
    patches: dict[str, Any] = {'medicalHandoffSentAt': timezone.now().isoformat()}
    if doctor_name:
        patches['medicalHandoffDoctor'] = clean_text(doctor_name)
    return patches


def sign_medical_handoff(record: dict, user, doctor_name: Optional[str] = None) -> dict[str, Any]:
    if not any(is_occupied(p) for p in (record.get('beds') or {}).values()):
        raise RecordConflict('There are no patients to sign for')
    name = clean_text(doctor_name) or (user.get_full_name() if user else '') or getattr(user, 'username', '')
    return {'medicalSignature': {
        'doctorName': name,
        'userId': getattr(user, 'pk', None),
        'signedAt': timezone.now().isoformat(),
    }}
