"""
Cookie authentication for patient PIN sessions.

Professionals authenticate with simplejwt bearer tokens, configured
directly in ``REST_FRAMEWORK``. Patients carry a signed
``patient_session`` cookie instead; this module defines the DRF
authentication class that turns that cookie into a
:class:`PatientPrincipal`. Keeping it separate from the views avoids
circular imports when the REST framework loads authentication classes.
"""
from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings
from rest_framework import authentication

from clinic.exceptions import PatientSessionExpired
from clinic.models import Patient, PatientSession
from clinic.services.sessions import active_session


@dataclass
class PatientPrincipal:
    """The ``request.user`` of a request made with a patient cookie."""

    patient: Patient
    session: PatientSession

    is_authenticated = True
    is_anonymous = False

    @property
    def id(self) -> int:
        return self.patient.id

    @property
    def pk(self) -> str:
        # Distinct from professional user ids in throttle cache keys
        return f'patient:{self.patient.id}'


class PatientSessionAuthentication(authentication.BaseAuthentication):
    """Authenticate a request from the ``patient_session`` cookie."""

    def authenticate(self, request):
        token = request.COOKIES.get(settings.PATIENT_SESSION_COOKIE_NAME)
        if not token:
            return None
        session = active_session(token)
        if session is None:
            raise PatientSessionExpired()
        return PatientPrincipal(patient=session.patient, session=session), token

    def authenticate_header(self, request):
        return 'Cookie realm="patient"'
