from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.permissions import CanManageConfig
from census.services.config_docs import get_config, merge_config


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageConfig])
def config_document(request, name):
    """Read a named settings document or merge a JSON object into it."""
    if request.method == 'POST':
        if not isinstance(request.data, dict) or not request.data:
            raise ValidationError('Expected a JSON object')
        return Response({'ok': True, 'name': name, 'data': merge_config(name, dict(request.data))})
    return Response({'ok': True, 'name': name, 'data': get_config(name)})
