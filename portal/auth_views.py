"""
Authentication views.

Login hands out both a legacy DRF token (``Authorization: Token``) and
a JWT pair (``Authorization: Bearer``); either is accepted by every
endpoint.  Self-registration only ever creates student accounts; staff
accounts are created by administrators.
"""
from __future__ import annotations

from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from .exceptions import BadRequest, Conflict, Forbidden, NotFound
from .models import Department, User
from .serializers.auth import LoginSerializer, LogoutSerializer, RegisterSerializer
from .services.audit import log_action
from .services.users import generate_student_id, serialize_user


def _token_payload(user: User) -> dict:
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return {
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': {
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'name': user.full_name,
            'role': user.role,
            'studentId': user.student_id,
        },
    }


def _resolve_username(identifier: str) -> str:
    if '@' in identifier:
        match = User.objects.filter(email__iexact=identifier).values_list('username', flat=True).first()
        if match:
            return match
    return identifier


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    if User.objects.filter(email__iexact=vd['email']).exists():
        raise Conflict('User with this email already exists')
    username = vd.get('username') or vd['email']
    if User.objects.filter(username__iexact=username).exists():
        raise Conflict('Username is already taken')
    dept_id = vd.get('departmentId')
    if dept_id and not Department.objects.filter(pk=dept_id).exists():
        raise NotFound('Department not found')

    try:
        with transaction.atomic():
            user = User(
                username=username,
                email=vd['email'],
                first_name=vd['firstName'],
                last_name=vd['lastName'],
                role=User.ROLE_STUDENT,
                department_id=dept_id,
                level=vd.get('level') or 100,
                gender=vd.get('gender', ''),
                phone=vd.get('phone', ''),
                student_id=generate_student_id(),
            )
            user.set_password(vd['password'])
            user.save()
    except IntegrityError:
        raise Conflict('User with this email already exists')

    log_action(user=user, action='register', object_type='user', object_id=user.id,
               detail={'ip': request.META.get('REMOTE_ADDR')})
    return Response({'ok': True, 'message': 'Registration successful', **_token_payload(user)}, status=201)

register_view.throttle_scope = 'register'


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Login with username or email plus password.

    Wrong credentials give 400; a correct password on a deactivated
    account gives 403.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    identifier = s.validated_data['username']
    password = s.validated_data['password']
    username = _resolve_username(identifier)

    user = authenticate(request, username=username, password=password)
    if not user:
        inactive = User.objects.filter(username=username, is_active=False).first()
        if inactive and inactive.check_password(password):
            raise Forbidden('Account is deactivated. Contact the administrator')
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'username': identifier, 'ip': request.META.get('REMOTE_ADDR')})
        raise BadRequest('Invalid credentials')

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    return Response({'ok': True, **_token_payload(user)}, status=200)

# DRF ScopedRateThrottle uses throttle_scope on the view function
login_view.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = TokenRefreshSerializer(data=request.data)
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    data = dict(s.validated_data)
    data['jwt_access'] = data.pop('access')
    if 'refresh' in data:
        data['jwt_refresh'] = data.pop('refresh')
    return Response({'ok': True, **data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist one refresh token, or every outstanding token of the user."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    count = 0
    if refresh and not s.validated_data.get('all'):
        try:
            RefreshToken(refresh).blacklist()
        except TokenError as e:
            raise BadRequest(str(e))
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'ok': True, 'data': serialize_user(request.user)})
