from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.models import AuditEvent
from census.permissions import CanViewAudit
from census.services.audit import get_local_audit_logs


def _serialize(ev: AuditEvent) -> dict:
    return {
        'id': ev.id,
        'timestamp': ev.created_at.isoformat(),
        'userId': ev.user_label,
        'action': ev.action,
        'entityType': ev.entity_type,
        'entityId': ev.entity_id,
        'details': ev.details,
        'patientIdentifier': ev.patient_identifier or None,
        'recordDate': ev.record_date or None,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewAudit])
def audit_list(request):
    """Stored audit events, newest first. Filters: action, entityType, recordDate, limit."""
    qs = AuditEvent.objects.all()
    action = request.query_params.get('action')
    if action:
        qs = qs.filter(action=action)
    entity_type = request.query_params.get('entityType')
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    record_date = request.query_params.get('recordDate')
    if record_date:
        qs = qs.filter(record_date=record_date)
    try:
        limit = max(1, min(int(request.query_params.get('limit', 200)), 1000))
    except ValueError:
        limit = 200
    return Response({'ok': True, 'data': [_serialize(ev) for ev in qs[:limit]]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewAudit])
def audit_local(request):
    return Response({'ok': True, 'data': get_local_audit_logs()})
