"""
Patient PIN login and session tokens.

A successful PIN check opens a :class:`PatientSession` row and returns
an HS256 JWT (PyJWT) carrying ``patientId`` and ``sessionId``. Wrong
PINs count towards a temporary lockout.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional

import jwt
from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.db import transaction
from django.utils import timezone

from clinic.exceptions import AccountLocked, InvalidCredentials
from clinic.models import Patient, PatientSession
from clinic.services.audit import client_ip, log_action, user_agent

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'


def hash_pin(pin: str) -> str:
    return make_password(pin)


def encode_session_token(session: PatientSession) -> str:
    payload = {
        'patientId': session.patient_id,
        'sessionId': str(session.id),
        'iat': int(session.created_at.timestamp()),
        'exp': int(session.expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.PATIENT_SESSION_SECRET, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Optional[dict[str, Any]]:
    """Return the verified claims, or None for a bad or expired token."""
    try:
        claims = jwt.decode(
            token,
            settings.PATIENT_SESSION_SECRET,
            algorithms=[ALGORITHM],
            options={'require': ['exp', 'iat']},
        )
    except jwt.PyJWTError:
        return None
    if not isinstance(claims.get('patientId'), int) or not isinstance(claims.get('sessionId'), str):
        return None
    return claims


def active_session(token: str) -> Optional[PatientSession]:
    """Return the live session behind a cookie token, if any."""
    claims = decode_session_token(token)
    if claims is None:
        return None
    session = (
        PatientSession.objects.select_related('patient')
        .filter(id=claims['sessionId'], patient_id=claims['patientId'])
        .first()
    )
    if session is None or not session.is_active:
        return None
    return session


def login_with_pin(*, cpf: str, pin: str, request=None) -> tuple[PatientSession, str]:
    """Check a CPF/PIN pair and open a session.

    Raises :class:`InvalidCredentials` for an unknown CPF or a wrong PIN
    and :class:`AccountLocked` while the patient is blocked, including
    on the attempt that triggers the block.
    """
    now = timezone.now()
    with transaction.atomic():
        patient = Patient.objects.select_for_update().filter(cpf=cpf).first()
        if patient is None:
            raise InvalidCredentials()
        if patient.pin_blocked_until and patient.pin_blocked_until > now:
            raise AccountLocked()

        if not check_password(pin, patient.pin_hash):
            patient.pin_attempts += 1
            blocked_until = None
            if patient.pin_attempts >= settings.PATIENT_PIN_MAX_ATTEMPTS:
                blocked_until = now + timedelta(minutes=settings.PATIENT_PIN_BLOCK_MINUTES)
                patient.pin_blocked_until = blocked_until
            patient.save(update_fields=['pin_attempts', 'pin_blocked_until', 'updated_at'])
            log_action(
                user=None, action='PATIENT_PIN_FAILED', entity='patient', entity_id=patient.id,
                details={
                    'attempts': patient.pin_attempts,
                    'blockedUntil': blocked_until.isoformat() if blocked_until else None,
                    'ip': client_ip(request),
                    'userAgent': user_agent(request),
                },
                request=request,
            )
            failure = 'blocked' if blocked_until else 'invalid'
        else:
            failure = None
            patient.pin_attempts = 0
            patient.pin_blocked_until = None
            patient.save(update_fields=['pin_attempts', 'pin_blocked_until', 'updated_at'])
            session = PatientSession.objects.create(
                patient=patient,
                created_at=now,
                expires_at=now + timedelta(hours=settings.PATIENT_SESSION_TTL_HOURS),
                ip=client_ip(request),
                user_agent=user_agent(request),
            )
            log_action(
                user=None, action='PATIENT_SESSION_CREATED', entity='patient', entity_id=patient.id,
                details={'sessionId': str(session.id), 'expiresAt': session.expires_at.isoformat()},
                request=request,
            )

    # Raised outside the atomic block so the attempt counter is committed
    if failure == 'blocked':
        logger.warning('Patient %s blocked after %s failed PIN attempts', patient.id, patient.pin_attempts)
        raise AccountLocked()
    if failure == 'invalid':
        raise InvalidCredentials()
    logger.info('Patient %s opened session %s', patient.id, session.id)
    return session, encode_session_token(session)


def revoke_session(session: PatientSession) -> None:
    if session.revoked_at is None:
        session.revoked_at = timezone.now()
        session.save(update_fields=['revoked_at'])
