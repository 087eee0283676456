from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from census.permissions import CanManageFlags
from census.services.feature_flags import UnknownFlag, feature_flags

ACTIONS = ('enable', 'disable', 'toggle', 'reset')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageFlags])
def feature_flag_list(request):
    """GET returns every flag; POST ``{flag, action}`` changes one (``reset`` without a flag resets all)."""
    if request.method == 'POST':
        action = request.data.get('action')
        flag = request.data.get('flag') or None
        if action not in ACTIONS:
            raise ValidationError({'action': f'must be one of {", ".join(ACTIONS)}'})
        try:
            if action == 'reset':
                feature_flags.reset(flag)
            elif not flag:
                raise ValidationError({'flag': 'required'})
            else:
                getattr(feature_flags, action)(flag)
        except UnknownFlag:
            raise NotFound(f'Unknown feature flag {flag}')
    return Response({'ok': True, 'flags': feature_flags.get_all()})
