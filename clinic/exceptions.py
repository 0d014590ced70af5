"""
Domain errors and the unified API exception handler.

Every error leaves the API as ``{"code", "message", "details"?}``.
Services raise the :class:`APIException` subclasses below; DRF's own
exceptions are mapped onto the same envelope.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class InvalidCredentials(exceptions.APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'CPF ou PIN inválidos'
    default_code = 'invalid_credentials'


class AccountLocked(exceptions.APIException):
    status_code = status.HTTP_423_LOCKED
    default_detail = 'Paciente bloqueado temporariamente. Tente novamente mais tarde.'
    default_code = 'account_locked'


class PatientSessionExpired(exceptions.APIException):
    """Raised for a missing, forged, revoked or expired patient cookie."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Sessão do paciente inválida ou expirada'
    default_code = 'unauthenticated'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflito'
    default_code = 'conflict'


class PatientDuplicate(Conflict):
    default_detail = 'Paciente com este CPF já está cadastrado.'
    default_code = 'unique_constraint'


class AppointmentConflict(Conflict):
    default_detail = 'Já existe consulta para este horário'
    default_code = 'appointment_conflict'


class ResponsibleProfessionalNotFound(Conflict):
    default_detail = 'Não foi possível identificar um profissional responsável para este paciente.'
    default_code = 'professional_not_found'


class ProfessionalInUse(Conflict):
    default_detail = 'Profissional possui consultas ou ocorrências vinculadas.'
    default_code = 'professional_in_use'


class EmailInUse(Conflict):
    default_detail = 'E-mail já cadastrado.'
    default_code = 'email_in_use'


class DocumentInUse(Conflict):
    default_detail = 'Documento já cadastrado para outro profissional.'
    default_code = 'document_in_use'


class InvalidDocument(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Documento deve conter 11 dígitos.'
    default_code = 'invalid_document'


def _code_for(exc) -> str:
    if isinstance(exc, (exceptions.ValidationError, exceptions.ParseError)):
        return 'VALIDATION_ERROR'
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        return 'UNAUTHENTICATED'
    if isinstance(exc, exceptions.PermissionDenied):
        return 'FORBIDDEN'
    if isinstance(exc, (exceptions.NotFound, Http404)):
        return 'NOT_FOUND'
    if isinstance(exc, exceptions.Throttled):
        return 'RATE_LIMITED'
    return str(getattr(exc, 'default_code', 'error')).upper()


def api_exception_handler(exc, context):
    # rest_framework.views loads DEFAULT_AUTHENTICATION_CLASSES, which import this module
    from rest_framework.views import exception_handler as drf_exception_handler

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', getattr(view, '__name__', view.__class__.__name__), exc_info=exc)
        return Response({'code': 'INTERNAL_ERROR', 'message': 'Erro interno do servidor'}, status=500)

    code = _code_for(exc)
    body: dict = {'code': code}
    if isinstance(exc, exceptions.ValidationError):
        body['message'] = 'Payload inválido'
        body['details'] = resp.data
    elif isinstance(exc, exceptions.Throttled):
        body['message'] = 'Too many requests'
    else:
        detail = resp.data.get('detail') if isinstance(resp.data, dict) else resp.data
        body['message'] = str(detail)

    response = Response(body, status=resp.status_code)
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in resp:
            response[header] = resp[header]
    if isinstance(exc, PatientSessionExpired):
        response.delete_cookie(settings.PATIENT_SESSION_COOKIE_NAME, path='/', samesite='Strict')
    return response
