"""
Authentication views.

Professionals log in with e-mail and password and receive a simplejwt
access/refresh pair. Patients log in with CPF and PIN and receive an
HttpOnly ``patient_session`` cookie. Both login endpoints skip
authentication entirely so that a stale credential never blocks a
fresh login, and both are throttled per client IP.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.authentication import PatientPrincipal
from clinic.exceptions import InvalidCredentials
from clinic.models import User
from clinic.serializers.auth import LoginSerializer, LogoutSerializer, PatientPinLoginSerializer
from clinic.services.audit import client_ip, log_action
from clinic.services.patients import format_patient
from clinic.services.professionals import format_professional
from clinic.services.sessions import active_session, login_with_pin, revoke_session
from clinic.throttling import LoginRateThrottle, PatientPinRateThrottle

logger = logging.getLogger(__name__)


class InvalidLogin(InvalidCredentials):
    default_detail = 'E-mail ou senha inválidos'


# ---------------------------------------------------------------------
# Professional login (e-mail + password)
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']

    account = User.objects.filter(email__iexact=email).first()
    user = authenticate(
        request,
        username=account.username if account else email,
        password=s.validated_data['password'],
    )
    if not user:
        log_action(user=None, action='LOGIN_FAILED', entity='user', entity_id=account.id if account else None,
                   details={'email': email}, request=request)
        logger.info('Failed login for %s from %s', email, client_ip(request))
        raise InvalidLogin()

    log_action(user=user, action='LOGIN_SUCCEEDED', entity='user', entity_id=user.id, request=request)
    refresh = RefreshToken.for_user(user)
    return Response({
        'access': str(refresh.access_token),
        'refresh': str(refresh),
        'user': format_professional(user),
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token (and a rotated refresh token)."""
    s = TokenRefreshSerializer(data=request.data)
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    return Response(s.validated_data)


# ---------------------------------------------------------------------
# Patient login (CPF + PIN)
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([PatientPinRateThrottle])
def patient_pin_login_view(request):
    s = PatientPinLoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    session, token = login_with_pin(cpf=s.validated_data['cpf'], pin=s.validated_data['pin'], request=request)
    response = Response(status=status.HTTP_204_NO_CONTENT)
    response.set_cookie(
        settings.PATIENT_SESSION_COOKIE_NAME,
        token,
        expires=session.expires_at,
        path='/',
        secure=settings.PATIENT_SESSION_COOKIE_SECURE,
        httponly=True,
        samesite='Strict',
    )
    return response


# ---------------------------------------------------------------------
# Current principal & logout
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    principal = request.user
    if isinstance(principal, PatientPrincipal):
        return Response({'kind': 'patient', 'patient': format_patient(principal.patient)})
    return Response({'kind': 'professional', 'user': format_professional(principal)})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def logout_view(request):
    """Close the patient session and/or blacklist a refresh token.

    Always answers 204: stale cookies and bearer tokens are ignored.
    """
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    token = request.COOKIES.get(settings.PATIENT_SESSION_COOKIE_NAME)
    session = active_session(token) if token else None
    if session is not None:
        revoke_session(session)
        log_action(user=None, action='PATIENT_SESSION_REVOKED', entity='patient', entity_id=session.patient_id,
                   details={'sessionId': str(session.id)}, request=request)
    refresh = s.validated_data.get('refresh')
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError:
            logger.info('Ignoring invalid refresh token on logout')
    response = Response(status=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.PATIENT_SESSION_COOKIE_NAME, path='/', samesite='Strict')
    return response
