"""
Nursing and medical handoff endpoints.

Nursing edits need ``edit_nursing_handoff``; medical notes need
``edit_medical_handoff`` and signing needs ``sign_medical_handoff``. The
medical endpoints answer 404 while ``ENABLE_MEDICAL_HANDOFF`` is off.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.permissions import CanEditMedicalHandoff, CanEditNursingHandoff, CanSignMedicalHandoff
from census.serializers.handoff import (
    ChecklistSerializer, MedicalNoteSerializer, MedicalSentSerializer, NovedadesSerializer,
    NursingNoteSerializer, StaffSerializer,
)
from census.serializers.records import validate_iso_date
from census.services import handoff
from census.services.feature_flags import feature_flags
from census.views.records import update_day


def _require_medical_handoff():
    if not feature_flags.is_enabled('ENABLE_MEDICAL_HANDOFF'):
        raise NotFound('Medical handoff is disabled')


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanEditNursingHandoff])
def shift_schedule(request, date):
    validate_iso_date(date)
    return Response({'ok': True, 'schedule': handoff.get_shift_schedule(date)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditNursingHandoff])
def nursing_note(request, date):
    s = NursingNoteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return update_day(date, lambda record: handoff.update_nursing_note(
        record, v['bedId'], v['shift'], v['value'], v['isNested']))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditNursingHandoff])
def checklist(request, date):
    s = ChecklistSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return update_day(date, lambda record: handoff.update_checklist(record, v['shift'], v['field'], v['value']))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditNursingHandoff])
def novedades(request, date):
    s = NovedadesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return update_day(date, lambda record: handoff.update_novedades(record, v['shift'], v['text']))


def _staff_patches(record, v):
    if v['role'] == 'tens':
        return handoff.update_tens(record, v['shift'], v['names'])
    if v['role'] == 'nurses':
        return handoff.update_nurses(record, v['shift'], v['names'])
    return handoff.update_handoff_staff(record, v['shift'], v['role'], v['names'])


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditNursingHandoff])
def staff(request, date):
    """Set delivering/receiving staff, TENS or nurses for a shift."""
    s = StaffSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return update_day(date, lambda record: _staff_patches(record, v))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditMedicalHandoff])
def medical_note(request, date):
    _require_medical_handoff()
    s = MedicalNoteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return update_day(date, lambda record: handoff.update_medical_note(record, v['bedId'], v['value'], v['isNested']))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditMedicalHandoff])
def medical_doctor(request, date):
    _require_medical_handoff()
    s = MedicalSentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = s.validated_data.get('doctorName', '')
    return update_day(date, lambda record: handoff.set_medical_doctor(record, doctor))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditMedicalHandoff])
def medical_sent(request, date):
    _require_medical_handoff()
    s = MedicalSentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = s.validated_data.get('doctorName')
    return update_day(date, lambda record: handoff.mark_medical_handoff_sent(record, doctor))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanSignMedicalHandoff])
def medical_sign(request, date):
    _require_medical_handoff()
    s = MedicalSentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = s.validated_data.get('doctorName')
    return update_day(date, lambda record: handoff.sign_medical_handoff(record, request.user, doctor))
