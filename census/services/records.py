"""
Census day persistence.

Each day is one ``DailyRecord`` row holding the JSON document the API
exposes (camelCase keys). Every successful write is mirrored into the
Django cache, which doubles as the local copy served while the database is
unreachable. Writes that fail against the database stay in the cache and
their date is queued as pending; ``sync_pending`` pushes them back later,
resolving conflicts by last-write-wins on ``lastUpdated``.
"""
from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone as dt_timezone
from typing import Any, Callable, Optional, Union

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework.exceptions import NotFound

from census.constants import BEDS, BED_MODE_BED
from census.exceptions import PendingUpdate, RecordConflict
from census.models import DailyRecord
from census.realtime.consumers import broadcast_record_updated
from census.services import audit
from census.services.optimistic import perform_optimistic_update

logger = logging.getLogger(__name__)

PENDING_KEY = 'census:pending_sync'

PatchSource = Union[dict, Callable[[dict], dict]]

# document key -> model field
COLUMN_FIELDS = {
    'beds': 'beds',
    'discharges': 'discharges',
    'transfers': 'transfers',
    'cma': 'cma',
    'nurses': 'nurses',
    'activeExtraBeds': 'active_extra_beds',
}

STAFF_LIST_FIELDS = ('nursesDayShift', 'nursesNightShift', 'tensDayShift', 'tensNightShift')

HANDOFF_FIELDS = (
    'handoffDayChecklist', 'handoffNightChecklist',
    'handoffNovedadesDayShift', 'handoffNovedadesNightShift',
    'handoffDayDelivers', 'handoffDayReceives', 'handoffNightDelivers', 'handoffNightReceives',
    'medicalHandoffDoctor', 'medicalHandoffSentAt', 'medicalSignature',
)


def local_key(date: str) -> str:
    return f'census:record:{date}'


def existing_days_key(year: int, month: int) -> str:
    return f'census:existing_days:{year:04d}-{month:02d}'


# ---------------------------------------------------------------------------
# Document shape
# ---------------------------------------------------------------------------
def empty_patient(bed_id: str) -> dict[str, Any]:
    return {
        'bedId': bed_id,
        'patientName': '',
        'rut': '',
        'age': '',
        'biologicalSex': '',
        'insurance': '',
        'origin': '',
        'admissionOrigin': '',
        'isRapanui': False,
        'pathology': '',
        'specialty': '',
        'status': '',
        'admissionDate': '',
        'hasWristband': False,
        'devices': [],
        'surgicalComplication': False,
        'isUPC': False,
        'isBedridden': False,
        'location': '',
        'bedMode': BED_MODE_BED,
        'hasCompanionCrib': False,
        'isBlocked': False,
        'blockedReason': '',
        'cudyr': None,
        'clinicalCrib': None,
        'handoffNoteDayShift': '',
        'handoffNoteNightShift': '',
        'medicalHandoffNote': '',
    }


def is_occupied(patient: Optional[dict]) -> bool:
    return bool(patient and (patient.get('patientName') or '').strip())


def empty_record(date: str) -> dict[str, Any]:
    doc: dict[str, Any] = {
        'date': date,
        'beds': {bed.id: empty_patient(bed.id) for bed in BEDS},
        'discharges': [],
        'transfers': [],
        'cma': [],
        'nurses': [],
        'activeExtraBeds': [],
        'lastUpdated': '',
    }
    for key in STAFF_LIST_FIELDS:
        doc[key] = []
    for key in HANDOFF_FIELDS:
        doc[key] = {} if key.endswith('Checklist') else ''
    return doc


def record_to_document(obj: DailyRecord) -> dict[str, Any]:
    doc: dict[str, Any] = dict(obj.extra or {})
    doc['date'] = obj.date
    for key, field in COLUMN_FIELDS.items():
        doc[key] = getattr(obj, field)
    doc['lastUpdated'] = obj.last_updated.isoformat() if obj.last_updated else ''
    return doc


def _model_values(doc: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {field: doc.get(key) or ({} if key == 'beds' else [])
                              for key, field in COLUMN_FIELDS.items()}
    values['extra'] = {k: v for k, v in doc.items()
                       if k not in COLUMN_FIELDS and k not in ('date', 'lastUpdated')}
    values['last_updated'] = parse_timestamp(doc.get('lastUpdated')) or timezone.now()
    return values


def parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = parse_datetime(str(value))
        if dt is None:
            return None
    if timezone.is_naive(dt):
        dt = dt.replace(tzinfo=dt_timezone.utc)
    return dt


def apply_patches(doc: dict[str, Any], patches: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``doc`` with dotted-path ``patches`` (``beds.R1.rut``) applied."""
    new_doc = copy.deepcopy(doc)
    for path, value in patches.items():
        parts = path.split('.')
        target = new_doc
        for part in parts[:-1]:
            nxt = target.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                target[part] = nxt
            target = nxt
        target[parts[-1]] = copy.deepcopy(value)
    return new_doc


# ---------------------------------------------------------------------------
# Local copy / pending queue
# ---------------------------------------------------------------------------
def get_local_record(date: str) -> Optional[dict[str, Any]]:
    doc = cache.get(local_key(date))
    return copy.deepcopy(doc) if doc else None


def set_local_record(doc: dict[str, Any]) -> None:
    cache.set(local_key(doc['date']), doc, getattr(settings, 'CENSUS_LOCAL_TIMEOUT', None))


def pending_dates() -> list[str]:
    return sorted(cache.get(PENDING_KEY) or [])


def _mark_pending(date: str) -> None:
    dates = set(cache.get(PENDING_KEY) or [])
    dates.add(date)
    cache.set(PENDING_KEY, sorted(dates), None)


def _unmark_pending(date: str) -> None:
    dates = set(cache.get(PENDING_KEY) or [])
    dates.discard(date)
    cache.set(PENDING_KEY, sorted(dates), None)


def _invalidate_existing_days(date: str) -> None:
    try:
        cache.delete(existing_days_key(int(date[:4]), int(date[5:7])))
    except ValueError:
        pass


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_record(date: str) -> Optional[dict[str, Any]]:
    try:
        obj = DailyRecord.objects.filter(date=date).first()
    except DatabaseError:
        logger.warning('database unavailable reading %s, using local copy', date)
        return get_local_record(date)
    remote = record_to_document(obj) if obj is not None else None
    if date in pending_dates():
        return resolve_conflict(get_local_record(date), remote)
    return remote


def get_record_or_404(date: str) -> dict[str, Any]:
    doc = get_record(date)
    if doc is None:
        raise NotFound(f'No census record for {date}')
    return doc


def _merge_listing(query: Callable, label: str, wanted: Callable[[str], bool]) -> tuple[list[dict[str, Any]], bool]:
    """Rows from ``query()`` merged with pending local copies; the flag says the database was skipped."""
    degraded = False
    try:
        docs = {o.date: record_to_document(o) for o in query()}
    except DatabaseError:
        logger.warning('database unavailable listing %s, using local copies', label)
        docs, degraded = {}, True
    for date in pending_dates():
        if wanted(date):
            winner = resolve_conflict(get_local_record(date), docs.get(date))
            if winner:
                docs[date] = winner
    return [docs[d] for d in sorted(docs)], degraded


def _list_month(year: int, month: int) -> tuple[list[dict[str, Any]], bool]:
    prefix = f'{year:04d}-{month:02d}-'
    return _merge_listing(lambda: DailyRecord.objects.filter(date__startswith=prefix), prefix,
                          lambda date: date.startswith(prefix))


def list_month_records(year: int, month: int) -> list[dict[str, Any]]:
    return _list_month(year, month)[0]


def list_records_between(start: str, end: str) -> list[dict[str, Any]]:
    """Records with ``start <= date <= end`` (inclusive), oldest first."""
    docs, _ = _merge_listing(lambda: DailyRecord.objects.filter(date__gte=start, date__lte=end),
                             f'{start}..{end}', lambda date: start <= date <= end)
    return docs


def existing_days(year: int, month: int) -> list[int]:
    """Days of the month whose record has at least one occupied bed.

    Cached unless the listing had to fall back to local copies.
    """
    ck = existing_days_key(year, month)
    cached = cache.get(ck)
    if cached is not None:
        return cached
    docs, degraded = _list_month(year, month)
    days = sorted(
        int(doc['date'][8:10])
        for doc in docs
        if any(is_occupied(p) for p in (doc.get('beds') or {}).values())
    )
    if not degraded:
        cache.set(ck, days, getattr(settings, 'CENSUS_EXISTING_DAYS_TTL', 300))
    return days


def get_previous_record(date: str) -> Optional[dict[str, Any]]:
    obj = DailyRecord.objects.filter(date__lt=date).order_by('-date').first()
    return record_to_document(obj) if obj else None


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def _write_db(doc: dict[str, Any]) -> None:
    with transaction.atomic():
        DailyRecord.objects.update_or_create(date=doc['date'], defaults=_model_values(doc))


def save_record(doc: dict[str, Any]) -> dict[str, Any]:
    """Stamp, persist and mirror ``doc``; queue it for sync if the database is down."""
    doc = dict(doc)
    doc['lastUpdated'] = timezone.now().isoformat()
    set_local_record(doc)
    try:
        _write_db(doc)
    except DatabaseError:
        logger.warning('database write failed for %s, kept local copy for sync', doc['date'], exc_info=True)
        _mark_pending(doc['date'])
    else:
        _unmark_pending(doc['date'])
    _invalidate_existing_days(doc['date'])
    broadcast_record_updated(doc['date'], doc['lastUpdated'])
    return doc


def write_lock_key(date: str) -> str:
    return f'census:write_lock:{date}'


def patch_record(date: str, change: PatchSource) -> dict[str, Any]:
    """Apply dotted-path patches optimistically and persist.

    ``change`` is either the patches themselves or a callable that receives
    the current document and returns them; the callable runs after the
    date's write lock is taken, so its checks see what it will overwrite.
    The lock lives in the shared cache. A second write for the same date
    while one is in flight raises :class:`PendingUpdate`. If persisting
    fails the local copy is rolled back and the error is re-raised. Audit
    entries logged while computing the patches are only stored once the
    write went through.
    """
    lock = write_lock_key(date)
    if not cache.add(lock, 1, getattr(settings, 'CENSUS_WRITE_LOCK_TIMEOUT', 30)):
        raise PendingUpdate(f'An update for {date} is still pending')
    try:
        with audit.held_until_success():
            return _patch_locked(date, change)
    finally:
        cache.delete(lock)


def _patch_locked(date: str, change: PatchSource) -> dict[str, Any]:
    current = get_record_or_404(date)
    patches = change(current) if callable(change) else change
    saved: dict[str, Any] = {}

    def _persist(new_doc):
        saved.update(save_record(new_doc))

    def _rollback(exc, previous):
        set_local_record(previous)

    result = perform_optimistic_update(
        current,
        lambda doc: apply_patches(doc, patches),
        _persist,
        set_local_record,
        _rollback,
    )
    if not result['success']:
        raise result['error']
    return saved


def resolve_conflict(local: Optional[dict], remote: Optional[dict]) -> Optional[dict]:
    """Last write wins by ``lastUpdated``; the remote copy wins ties."""
    if local is None:
        return remote
    if remote is None:
        return local
    local_ts = parse_timestamp(local.get('lastUpdated'))
    remote_ts = parse_timestamp(remote.get('lastUpdated'))
    if local_ts and (remote_ts is None or local_ts > remote_ts):
        return local
    return remote


def sync_pending() -> dict[str, list[str]]:
    """Push queued local copies to the database."""
    summary: dict[str, list[str]] = {'synced': [], 'discarded': [], 'failed': []}
    for date in pending_dates():
        local = get_local_record(date)
        try:
            obj = DailyRecord.objects.filter(date=date).first()
            remote = record_to_document(obj) if obj else None
            winner = resolve_conflict(local, remote)
            if winner is not None and winner is local:
                _write_db(local)
                summary['synced'].append(date)
            else:
                if winner is not None:
                    set_local_record(winner)
                summary['discarded'].append(date)
        except DatabaseError:
            logger.warning('sync of %s failed, keeping it queued', date, exc_info=True)
            summary['failed'].append(date)
            continue
        _unmark_pending(date)
        _invalidate_existing_days(date)
    if summary['synced'] or summary['discarded']:
        logger.info('offline sync: %d synced, %d discarded', len(summary['synced']), len(summary['discarded']))
    return summary


def delete_record(date: str, user=None) -> bool:
    deleted, _ = DailyRecord.objects.filter(date=date).delete()
    had_local = cache.get(local_key(date)) is not None
    cache.delete(local_key(date))
    _unmark_pending(date)
    _invalidate_existing_days(date)
    if deleted or had_local:
        audit.log_audit_event(user, audit.DAILY_RECORD_DELETED, 'dailyRecord', date, record_date=date)
        return True
    return False


def _copy_bed_for_new_day(bed_id: str, prev: Optional[dict]) -> dict[str, Any]:
    if prev and (is_occupied(prev) or prev.get('isBlocked')):
        patient = copy.deepcopy(prev)
        patient['cudyr'] = None
        if isinstance(patient.get('clinicalCrib'), dict):
            patient['clinicalCrib']['cudyr'] = None
        return patient
    patient = empty_patient(bed_id)
    if prev:
        patient['bedMode'] = prev.get('bedMode') or BED_MODE_BED
        patient['hasCompanionCrib'] = bool(prev.get('hasCompanionCrib'))
    return patient


def build_day_from_previous(date: str, prev: dict[str, Any]) -> dict[str, Any]:
    doc = empty_record(date)
    prev_beds = prev.get('beds') or {}
    doc['beds'] = {bed.id: _copy_bed_for_new_day(bed.id, prev_beds.get(bed.id)) for bed in BEDS}
    doc['activeExtraBeds'] = list(prev.get('activeExtraBeds') or [])
    doc['nurses'] = list(prev.get('nurses') or [])
    for key in STAFF_LIST_FIELDS:
        doc[key] = list(prev.get(key) or [])
    return doc


def create_day(date: str, copy_previous: bool = False, user=None) -> dict[str, Any]:
    if get_record(date) is not None:
        raise RecordConflict(f'A census record for {date} already exists')
    prev = get_previous_record(date) if copy_previous else None
    doc = build_day_from_previous(date, prev) if prev else empty_record(date)
    saved = save_record(doc)
    audit.log_audit_event(user, audit.DAILY_RECORD_CREATED, 'dailyRecord', date,
                          {'copiedFrom': prev['date'] if prev else None}, record_date=date)
    return saved
