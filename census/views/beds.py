"""
Bed operations on a census day. Each endpoint validates the request, then
hands :func:`census.views.records.update_day` the bed operation from
:mod:`census.services.beds`, which turns the locked record into patches.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from census.permissions import CanEditCensus
from census.serializers.beds import (
    BlockSerializer, CudyrSerializer, MoveSerializer, PatientFieldSerializer, PatientFieldsSerializer,
)
from census.services import beds as bed_ops
from census.services.feature_flags import feature_flags
from census.views.records import update_day


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def update_patient(request, date, bed_id):
    s = PatientFieldSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    field, value = s.validated_data['field'], s.validated_data['value']
    return update_day(date, lambda record: bed_ops.update_patient(record, bed_id, field, value, user=request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def update_patient_multiple(request, date, bed_id):
    s = PatientFieldsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    values = s.validated_data['values']
    return update_day(date, lambda record: bed_ops.update_patient_multiple(record, bed_id, values, user=request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def update_cudyr(request, date, bed_id):
    if not feature_flags.is_enabled('ENABLE_CUDYR'):
        raise NotFound('CUDYR is disabled')
    s = CudyrSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    field, value = s.validated_data['field'], s.validated_data['value']
    return update_day(date, lambda record: bed_ops.update_cudyr(record, bed_id, field, value))


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditCensus])
def clinical_crib(request, date, bed_id):
    """POST creates the crib, DELETE removes it."""
    if request.method == 'DELETE':
        return update_day(date, lambda record: bed_ops.remove_clinical_crib(record, bed_id))
    return update_day(date, lambda record: bed_ops.create_clinical_crib(record, bed_id))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def update_clinical_crib(request, date, bed_id):
    s = PatientFieldSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    field, value = s.validated_data['field'], s.validated_data['value']
    return update_day(date, lambda record: bed_ops.update_clinical_crib(record, bed_id, field, value))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def update_clinical_crib_multiple(request, date, bed_id):
    s = PatientFieldsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    values = s.validated_data['values']
    return update_day(date, lambda record: bed_ops.update_clinical_crib_multiple(record, bed_id, values))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def clear_patient(request, date, bed_id):
    return update_day(date, lambda record: bed_ops.clear_patient(record, bed_id, user=request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def clear_all_beds(request, date):
    return update_day(date, bed_ops.clear_all_beds)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def move_or_copy_patient(request, date):
    s = MoveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return update_day(date, lambda record: bed_ops.move_or_copy_patient(
        record, v['type'], v['sourceBedId'], v['targetBedId'], user=request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def toggle_block_bed(request, date, bed_id):
    s = BlockSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    reason = s.validated_data['reason']
    return update_day(date, lambda record: bed_ops.toggle_block_bed(record, bed_id, reason))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def toggle_extra_bed(request, date, bed_id):
    return update_day(date, lambda record: bed_ops.toggle_extra_bed(record, bed_id))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def toggle_bed_mode(request, date, bed_id):
    return update_day(date, lambda record: bed_ops.toggle_bed_mode(record, bed_id))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def toggle_companion_crib(request, date, bed_id):
    return update_day(date, lambda record: bed_ops.toggle_companion_crib(record, bed_id))
