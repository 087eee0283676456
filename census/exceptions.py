import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class RecordConflict(Exception):
    """A bed or movement operation cannot be applied to the current record."""


class PendingUpdate(Exception):
    """An optimistic write for the same record is still in flight."""


def api_exception_handler(exc, context):
    if isinstance(exc, RecordConflict):
        return Response({'ok': False, 'error': {'code': 'conflict', 'message': str(exc)}}, status=409)
    if isinstance(exc, PendingUpdate):
        return Response({'ok': False, 'error': {'code': 'pending', 'message': str(exc)}}, status=409)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
