"""
Authentication endpoints.

Login hands out both a DRF token (``Authorization: Token <key>``) and a
simplejwt access/refresh pair; refresh and logout work on the JWT pair.
Kept apart from ``census.authentication`` so DRF can import the
authentication class without pulling in the views.
"""
from __future__ import annotations

from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView
from django.contrib.auth import authenticate

from census.permissions import ROLE_PERMISSIONS
from census.serializers.auth import LoginSerializer
from census.services.audit import USER_LOGIN, log_audit_event


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Username/password login. Returns tokens, the role and its capabilities."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    user = authenticate(request, username=vd['username'], password=vd['password'])
    if not user:
        log_audit_event(None, USER_LOGIN, 'user', vd['username'],
                        details={'result': 'fail', 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'detail': 'Usuario o contraseña incorrectos'}, status=400)

    log_audit_event(user, USER_LOGIN, 'user', str(user.pk),
                    details={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': {
            'id': user.id,
            'username': user.username,
            'name': user.get_full_name() or user.username,
            'role': user.role,
            'permissions': sorted(ROLE_PERMISSIONS.get(user.role, ())),
        },
    })


# ScopedRateThrottle reads throttle_scope from the view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    resp = TokenRefreshView.as_view()(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or every outstanding one for the user."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'ok': False, 'detail': str(e)}, status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    return Response({'ok': True, 'blacklisted': count})
