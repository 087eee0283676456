"""
POST /api/census/email

Relays the month-to-date census master workbook by email. The caller's
role is taken from the ``X-User-Role`` header; it must be one of
``CENSUS_EMAIL_ALLOWED_ROLES`` and match the authenticated user's role,
and that role needs the send capability.
Responses keep the ``{success, message}`` shape the census client reads.
"""
import logging

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.permissions import CanSendCensusEmail
from census.serializers.email import CensusEmailSerializer
from census.services.audit import CENSUS_EMAIL_SENT, log_audit_event
from census.services.email import resolve_recipients, send_census_email
from census.services.feature_flags import feature_flags
from census.services.reports import ReportError

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = 'No autorizado para enviar correos de censo.'
MISSING_BODY_MESSAGE = 'Solicitud inválida: falta el cuerpo.'
MISSING_DATA_MESSAGE = 'Solicitud inválida: falta la fecha o los datos del censo.'


def _fail(message, status):
    return Response({'success': False, 'message': message}, status=status)


def _role_allowed(request) -> bool:
    header_role = (request.headers.get('X-User-Role') or '').strip()
    if header_role not in settings.CENSUS_EMAIL_ALLOWED_ROLES:
        return False
    user = request.user
    return bool(user.is_superuser or user.role == header_role)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanSendCensusEmail])
def census_email(request):
    if not feature_flags.is_enabled('ENABLE_EMAIL_CENSUS'):
        return _fail('El envío de correos de censo está deshabilitado.', 404)
    if not _role_allowed(request):
        return _fail(UNAUTHORIZED_MESSAGE, 403)
    if not request.data or not isinstance(request.data, dict):
        return _fail(MISSING_BODY_MESSAGE, 400)
    if not request.data.get('date'):
        return _fail(MISSING_DATA_MESSAGE, 400)

    s = CensusEmailSerializer(data=request.data)
    if not s.is_valid():
        return Response({'success': False, 'message': MISSING_DATA_MESSAGE, 'errors': s.errors}, status=400)
    v = s.validated_data

    try:
        gmail_id = send_census_email(
            v['date'],
            records=v.get('records'),
            recipients=v.get('recipients'),
            nurses_signature=v.get('nursesSignature'),
            body=v.get('body'),
            requested_by=request.user.username,
        )
    except ReportError as e:
        return _fail(str(e), 400)
    except Exception as e:
        logger.exception('census email for %s failed', v['date'])
        return _fail(str(e) or 'Error enviando el correo.', 500)

    log_audit_event(request.user, CENSUS_EMAIL_SENT, 'dailyRecord', v['date'],
                    details={'recipients': resolve_recipients(v.get('recipients')), 'gmailId': gmail_id},
                    record_date=v['date'])
    return Response({'success': True, 'message': 'Correo enviado', 'gmailId': gmail_id})


census_email.cls.throttle_scope = 'census_email'
