from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.permissions import CanEditCensus
from census.serializers.movements import (
    CmaSerializer, DischargeCreateSerializer, MovementUpdateSerializer, TransferCreateSerializer,
)
from census.services import movements
from census.views.records import load_day, update_day


def _created(resp):
    resp.status_code = 201
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def add_discharge(request, date):
    s = DischargeCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return _created(update_day(date, lambda record: movements.add_discharge(
        record, v['bedId'], v['status'], v['dischargeType'], v.get('time'), v['isNested'], user=request.user)))


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditCensus])
def discharge_detail(request, date, entry_id):
    if request.method == 'DELETE':
        return update_day(date, lambda record: movements.delete_discharge(record, entry_id))
    s = MovementUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    changes = s.validated_data['changes']
    return update_day(date, lambda record: movements.update_discharge(record, entry_id, changes))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def undo_discharge(request, date, entry_id):
    return update_day(date, lambda record: movements.undo_discharge(record, entry_id, user=request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def add_transfer(request, date):
    s = TransferCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    return _created(update_day(date, lambda record: movements.add_transfer(
        record, v['bedId'], v['evacuationMethod'], v['receivingCenter'], v['receivingCenterOther'],
        v['transferEscort'], v.get('time'), v['isNested'], user=request.user)))


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditCensus])
def transfer_detail(request, date, entry_id):
    if request.method == 'DELETE':
        return update_day(date, lambda record: movements.delete_transfer(record, entry_id))
    s = MovementUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    changes = s.validated_data['changes']
    return update_day(date, lambda record: movements.update_transfer(record, entry_id, changes))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def undo_transfer(request, date, entry_id):
    return update_day(date, lambda record: movements.undo_transfer(record, entry_id, user=request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditCensus])
def add_cma(request, date):
    s = CmaSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = s.validated_data
    return _created(update_day(date, lambda record: movements.add_cma(record, data)))


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditCensus])
def cma_detail(request, date, entry_id):
    if request.method == 'DELETE':
        return update_day(date, lambda record: movements.delete_cma(record, entry_id))
    s = MovementUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    changes = s.validated_data['changes']
    return update_day(date, lambda record: movements.update_cma(record, entry_id, changes))


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanEditCensus])
def movements_summary(request, date):
    record = load_day(date)
    return Response({
        'ok': True,
        'discharges': record.get('discharges') or [],
        'transfers': record.get('transfers') or [],
        'cma': record.get('cma') or [],
    })
