"""
Formatting and validation of patient fields before they reach a record.

``process_field_value`` is applied to every incoming bed/crib field and
returns a :class:`ValidationResult`. Rejected values leave the record
untouched.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, NamedTuple, Optional

from django.utils import timezone

FUTURE_ADMISSION_ERROR = 'La fecha de ingreso no puede ser futura'
INVALID_DATE_ERROR = 'Fecha de ingreso inválida'

_RUT_CHARS = re.compile(r'^[0-9.\-]+[0-9kK]$')
_PASSPORT = re.compile(r'^[A-Za-z]{1,3}[A-Za-z0-9]{4,}$')


class ValidationResult(NamedTuple):
    valid: bool
    value: Any
    error: Optional[str] = None


def capitalize_words(text: str) -> str:
    return ' '.join(w[:1].upper() + w[1:].lower() for w in text.split())


def format_patient_name(name: str) -> str:
    if not name or not name.strip():
        return name
    return capitalize_words(name.strip())


def clean_rut(rut: str) -> str:
    return re.sub(r'[^0-9kK]', '', rut or '').upper()


def compute_check_digit(body: str) -> str:
    total, factor = 0, 2
    for digit in reversed(body):
        total += int(digit) * factor
        factor = 2 if factor == 7 else factor + 1
    rest = 11 - total % 11
    if rest == 11:
        return '0'
    if rest == 10:
        return 'K'
    return str(rest)


def is_valid_rut(rut: str) -> bool:
    clean = clean_rut(rut)
    if len(clean) < 2:
        return False
    body, dv = clean[:-1], clean[-1]
    if not body.isdigit():
        return False
    return compute_check_digit(body) == dv


def format_rut(rut: str) -> str:
    clean = clean_rut(rut)
    if len(clean) < 2:
        return rut
    body, dv = clean[:-1], clean[-1]
    if not body.isdigit():
        return rut
    return f"{int(body):,}".replace(',', '.') + f"-{dv}"


def is_passport_format(value: str) -> bool:
    """Anything with letters other than a trailing ``K`` check digit."""
    value = value.strip()
    if _RUT_CHARS.match(value):
        return False
    return bool(_PASSPORT.match(value))


def validate_rut(rut: str) -> ValidationResult:
    if not rut or not rut.strip():
        return ValidationResult(True, rut)
    trimmed = rut.strip()
    if is_passport_format(trimmed):
        return ValidationResult(True, trimmed)
    formatted = format_rut(trimmed)
    if is_valid_rut(formatted):
        return ValidationResult(True, formatted)
    return ValidationResult(True, trimmed)


def validate_admission_date(value: str, today: Optional[date] = None) -> ValidationResult:
    if not value:
        return ValidationResult(True, value)
    try:
        selected = datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        return ValidationResult(False, value, INVALID_DATE_ERROR)
    today = today or timezone.localdate()
    if selected > today:
        return ValidationResult(False, value, FUTURE_ADMISSION_ERROR)
    return ValidationResult(True, value)


def process_field_value(field: str, value: Any) -> ValidationResult:
    if field == 'patientName' and isinstance(value, str):
        return ValidationResult(True, format_patient_name(value))
    if field == 'rut' and isinstance(value, str):
        return validate_rut(value)
    if field == 'admissionDate' and isinstance(value, str):
        return validate_admission_date(value)
    return ValidationResult(True, value)
