"""
Static vocabularies for the ward: bed catalogue, roles, movement statuses
and the email templates used when the census is relayed by mail.
"""
from __future__ import annotations

from typing import NamedTuple


class Bed(NamedTuple):
    id: str
    name: str
    type: str
    is_extra: bool = False


BED_TYPE_UTI = 'UTI'
BED_TYPE_MEDIA = 'MEDIA'

BEDS: list[Bed] = [
    Bed('R1', 'R1', BED_TYPE_UTI),
    Bed('R2', 'R2', BED_TYPE_UTI),
    Bed('R3', 'R3', BED_TYPE_UTI),
    Bed('R4', 'R4', BED_TYPE_UTI),
    Bed('NEO1', 'NEO 1', BED_TYPE_MEDIA),
    Bed('NEO2', 'NEO 2', BED_TYPE_MEDIA),
    Bed('H1C1', 'H1C1', BED_TYPE_MEDIA),
    Bed('H1C2', 'H1C2', BED_TYPE_MEDIA),
    Bed('H2C1', 'H2C1', BED_TYPE_MEDIA),
    Bed('H2C2', 'H2C2', BED_TYPE_MEDIA),
    Bed('H3C1', 'H3C1', BED_TYPE_MEDIA),
    Bed('H3C2', 'H3C2', BED_TYPE_MEDIA),
    Bed('H4C1', 'H4C1', BED_TYPE_MEDIA),
    Bed('H4C2', 'H4C2', BED_TYPE_MEDIA),
    Bed('H5C1', 'H5C1', BED_TYPE_MEDIA),
    Bed('H5C2', 'H5C2', BED_TYPE_MEDIA),
    Bed('H6C1', 'H6C1', BED_TYPE_MEDIA),
    Bed('H6C2', 'H6C2', BED_TYPE_MEDIA),
    Bed('E1', 'Extra 1', BED_TYPE_MEDIA, True),
    Bed('E2', 'Extra 2', BED_TYPE_MEDIA, True),
    Bed('E3', 'Extra 3', BED_TYPE_MEDIA, True),
    Bed('E4', 'Extra 4', BED_TYPE_MEDIA, True),
    Bed('E5', 'Extra 5', BED_TYPE_MEDIA, True),
]

BEDS_BY_ID: dict[str, Bed] = {b.id: b for b in BEDS}

HOSPITAL_CAPACITY = sum(1 for b in BEDS if not b.is_extra)

MONTH_NAMES = [
    'Enero', 'Febrero', 'Marzo', 'Abril', 'Mayo', 'Junio',
    'Julio', 'Agosto', 'Septiembre', 'Octubre', 'Noviembre', 'Diciembre',
]

BED_MODE_BED = 'Cama'
BED_MODE_CRIB = 'Cuna'
BED_MODES = (BED_MODE_BED, BED_MODE_CRIB)

DISCHARGE_ALIVE = 'Vivo'
DISCHARGE_DECEASED = 'Fallecido'
DISCHARGE_STATUSES = (DISCHARGE_ALIVE, DISCHARGE_DECEASED)

PATIENT_STATUSES = ('Estable', 'Grave', 'De cuidado')

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
ROLE_ADMIN = 'admin'
ROLE_NURSE = 'nurse_hospital'
ROLE_DOCTOR = 'doctor_urgency'
ROLE_VIEWER = 'viewer_census'

ROLE_CHOICES = [
    (ROLE_ADMIN, 'Administrator'),
    (ROLE_NURSE, 'Hospital nurse'),
    (ROLE_DOCTOR, 'Emergency doctor'),
    (ROLE_VIEWER, 'Census viewer'),
]

# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------
SIGNATURE_PLACEHOLDER = '"nombre enfermera 1" / "nombre enfermera 2"'


def format_date_ddmmyyyy(date: str | None) -> str:
    if not date:
        return ''
    parts = date[:10].split('-')
    if len(parts) != 3:
        return date
    year, month, day = parts
    return f"{day}-{month}-{year}"


def build_census_email_subject(date: str) -> str:
    return f"Censo diario hospitalizados – {format_date_ddmmyyyy(date)}"


def build_census_email_body(date: str, nurses_signature: str | None = None) -> str:
    signature_line = (
        f"Enfermería turno noche - {nurses_signature}."
        if nurses_signature
        else f"Enfermería turno noche - {SIGNATURE_PLACEHOLDER}."
    )
    return '\n'.join([
        'Estimados/as,',
        f"Se adjunta el censo diario de hospitalizados correspondiente al {format_date_ddmmyyyy(date)}.",
        'Sin otro particular, se despiden',
        '',
        signature_line,
    ])
