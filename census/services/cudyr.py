"""
CUDYR risk/dependency scoring.

Five categories (Contagio, UPP/Caída, Dependencia, Yatrogenia, Riesgo),
each scored 0-3. Legacy boolean marks are read as 0/1. A patient with three
or more marked categories is high risk.
"""
from __future__ import annotations

from typing import Any, Optional

from census.constants import BEDS

CATEGORIES = ('C', 'U', 'D', 'Y', 'R')
MAX_SCORE = 3
HIGH_RISK_THRESHOLD = 3


def coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if value in (None, ''):
        return 0
    try:
        score = int(value)
    except (TypeError, ValueError):
        raise ValueError(f'CUDYR score must be a number between 0 and {MAX_SCORE}')
    if score < 0 or score > MAX_SCORE:
        raise ValueError(f'CUDYR score must be a number between 0 and {MAX_SCORE}')
    return score


def _scores(cudyr: Optional[dict]) -> dict[str, int]:
    cudyr = cudyr or {}
    out = {}
    for cat in CATEGORIES:
        try:
            out[cat] = coerce_score(cudyr.get(cat))
        except ValueError:
            out[cat] = 0
    return out


def count_categories(cudyr: Optional[dict]) -> int:
    return sum(1 for v in _scores(cudyr).values() if v > 0)


def total_score(cudyr: Optional[dict]) -> int:
    return sum(_scores(cudyr).values())


def is_high_risk(cudyr: Optional[dict]) -> bool:
    return count_categories(cudyr) >= HIGH_RISK_THRESHOLD


def marked_categories(cudyr: Optional[dict]) -> list[str]:
    return [cat for cat, v in _scores(cudyr).items() if v > 0]


def summarize(record: dict[str, Any]) -> dict[str, Any]:
    """Aggregate CUDYR marks over the occupied beds of a record."""
    beds = record.get('beds') or {}
    occupied = [p for p in beds.values() if p and (p.get('patientName') or '').strip()]
    with_cudyr = [p for p in occupied if count_categories(p.get('cudyr')) > 0]
    frequency = {cat: sum(1 for p in occupied if _scores(p.get('cudyr'))[cat] > 0) for cat in CATEGORIES}
    # stable sort keeps C,U,D,Y,R order on ties
    ranked = sorted(frequency.items(), key=lambda kv: kv[1], reverse=True)
    most_common = {'category': ranked[0][0], 'count': ranked[0][1]} if ranked[0][1] > 0 else None
    return {
        'occupiedBeds': len(occupied),
        'patientsWithCudyr': len(with_cudyr),
        'highRiskPatients': sum(1 for p in occupied if is_high_risk(p.get('cudyr'))),
        'categoryFrequency': frequency,
        'mostCommon': most_common,
        'totalCategories': sum(count_categories(p.get('cudyr')) for p in occupied),
    }


def daily_rows(record: dict[str, Any]) -> list[list[Any]]:
    """Rows for the CUDYR daily export, in bed catalogue order."""
    rows = []
    beds = record.get('beds') or {}
    for bed in BEDS:
        p = beds.get(bed.id)
        if not p or not (p.get('patientName') or '').strip() or not p.get('cudyr'):
            continue
        scores = _scores(p['cudyr'])
        rows.append([
            record.get('date', ''),
            bed.name,
            p.get('patientName', ''),
            p.get('rut', ''),
            sum(scores.values()),
            ','.join(marked_categories(p['cudyr'])),
            scores['D'],
            'ALTO' if is_high_risk(p['cudyr']) else 'BAJO',
        ])
    return rows
