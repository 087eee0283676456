"""
Excel downloads. Every endpoint answers with the workbook bytes and an
attachment ``Content-Disposition``.
"""
from __future__ import annotations

from django.http import HttpResponse
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.permissions import CanExportReports
from census.serializers.records import MonthQuerySerializer, RangeQuerySerializer, validate_iso_date
from census.services import records as record_store
from census.services import reports
from census.services.feature_flags import feature_flags


def _xlsx(content: bytes, filename: str) -> HttpResponse:
    resp = HttpResponse(content, content_type=reports.XLSX_CONTENT_TYPE)
    resp['Content-Disposition'] = f'attachment; filename="{filename}"'
    return resp


def _error(message: str, status: int) -> Response:
    return Response({'ok': False, 'error': {'code': 'report_error', 'message': message}}, status=status)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanExportReports])
def census_master(request, date):
    """Month-to-date master workbook ending at ``date``."""
    validate_iso_date(date)
    try:
        content = reports.build_census_master_bytes(reports.month_records_until(date))
    except reports.ReportError as e:
        return _error(str(e), 404)
    return _xlsx(content, reports.census_master_filename(date))


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanExportReports])
def raw_daily(request, date):
    validate_iso_date(date)
    record = record_store.get_record_or_404(date)
    return _xlsx(reports.build_daily_raw(record), reports.daily_raw_filename(date))


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanExportReports])
def raw_range(request):
    q = RangeQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    start, end = q.validated_data['start'], q.validated_data['end']
    try:
        content = reports.build_range_raw(record_store.list_records_between(start, end))
    except reports.ReportError as e:
        return _error(str(e), 404)
    return _xlsx(content, reports.range_raw_filename(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanExportReports])
def raw_month(request):
    q = MonthQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    year, month = q.validated_data['year'], q.validated_data['month']
    try:
        content = reports.build_range_raw(record_store.list_month_records(year, month))
    except reports.ReportError as e:
        return _error(str(e), 404)
    return _xlsx(content, f'Censo_HangaRoa_{year}-{month:02d}.xlsx')


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanExportReports])
def cudyr_daily(request, date):
    if not feature_flags.is_enabled('ENABLE_CUDYR'):
        raise NotFound('CUDYR is disabled')
    validate_iso_date(date)
    record = record_store.get_record_or_404(date)
    return _xlsx(reports.build_cudyr_daily(record), reports.cudyr_filename(date))
