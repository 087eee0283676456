from __future__ import annotations

from typing import Any, Iterable

from census.constants import BEDS, BED_MODE_CRIB, HOSPITAL_CAPACITY


def _occupied(p) -> bool:
    return bool(p and (p.get('patientName') or '').strip())


def calculate_stats(beds: dict[str, Any], active_extra_beds: Iterable[str] = ()) -> dict[str, int]:
    """Occupancy figures for one census day.

    Extra beds only count while active. ``serviceCapacity`` is the regular
    capacity minus blocked beds; ``availableCapacity`` never goes negative.
    """
    active_extra = set(active_extra_beds or ())
    occupied_beds = occupied_cribs = clinical_cribs = companion_cribs = blocked = 0
    for bed in BEDS:
        if bed.is_extra and bed.id not in active_extra:
            continue
        p = beds.get(bed.id)
        if not p:
            continue
        if p.get('isBlocked'):
            blocked += 1
            continue
        if not _occupied(p):
            continue
        if p.get('bedMode') == BED_MODE_CRIB:
            occupied_cribs += 1
        else:
            occupied_beds += 1
        if _occupied(p.get('clinicalCrib')):
            clinical_cribs += 1
        if p.get('hasCompanionCrib'):
            companion_cribs += 1

    service_capacity = HOSPITAL_CAPACITY - blocked
    return {
        'occupiedBeds': occupied_beds,
        'occupiedCribs': occupied_cribs,
        'clinicalCribsCount': clinical_cribs,
        'companionCribs': companion_cribs,
        'totalCribsUsed': occupied_cribs + clinical_cribs + companion_cribs,
        'totalHospitalized': occupied_beds + occupied_cribs + clinical_cribs,
        'blockedBeds': blocked,
        'serviceCapacity': service_capacity,
        'availableCapacity': max(0, service_capacity - (occupied_beds + occupied_cribs)),
    }
