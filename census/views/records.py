"""
Census day endpoints: read, create, patch, delete, month listings and
offline sync.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.permissions import CanEditCensus
from census.serializers.records import (
    CreateDaySerializer, MonthQuerySerializer, PatchRecordSerializer, validate_iso_date,
)
from census.services import beds as bed_ops
from census.services import records as record_store
from census.services.cudyr import summarize as cudyr_summary
from census.services.stats import calculate_stats


def respond_with_record(doc) -> Response:
    return Response({'ok': True, 'record': doc, 'pendingSync': doc['date'] in record_store.pending_dates()})


def load_day(date):
    validate_iso_date(date)
    return record_store.get_record_or_404(date)


def update_day(date, compute) -> Response:
    """Run ``compute(record) -> patches`` under the date's write lock and answer with the result."""
    validate_iso_date(date)
    return respond_with_record(record_store.patch_record(date, compute))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def records_collection(request):
    """GET ?year=&month= lists a month; POST creates a day (optionally copying the previous one)."""
    if request.method == 'GET':
        q = MonthQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        docs = record_store.list_month_records(q.validated_data['year'], q.validated_data['month'])
        return Response({'ok': True, 'data': docs})

    s = CreateDaySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doc = record_store.create_day(s.validated_data['date'], s.validated_data['copyPrevious'], user=request.user)
    return Response({'ok': True, 'record': doc}, status=201)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditCensus])
def record_detail(request, date):
    validate_iso_date(date)
    if request.method == 'DELETE':
        if not record_store.delete_record(date, user=request.user):
            return Response({'ok': False, 'error': {'code': 'not_found', 'message': f'No census record for {date}'}},
                            status=404)
        return Response({'ok': True})
    return respond_with_record(record_store.get_record_or_404(date))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def record_patch(request, date):
    s = PatchRecordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patches = s.validated_data['patches']
    return update_day(date, lambda record: bed_ops.screen_document_patches(record, patches, user=request.user))


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanEditCensus])
def record_stats(request, date):
    validate_iso_date(date)
    doc = record_store.get_record_or_404(date)
    return Response({
        'ok': True,
        'stats': calculate_stats(doc.get('beds') or {}, doc.get('activeExtraBeds') or []),
        'cudyr': cudyr_summary(doc),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanEditCensus])
def existing_days(request):
    q = MonthQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'ok': True, 'days': record_store.existing_days(q.validated_data['year'], q.validated_data['month'])})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def offline_sync(request):
    """GET lists dates waiting for sync; POST pushes them to the database."""
    if request.method == 'GET':
        return Response({'ok': True, 'pending': record_store.pending_dates()})
    return Response({'ok': True, **record_store.sync_pending()})
