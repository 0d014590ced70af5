"""
Patient views.

Professionals list, search, register and edit patients and log
occurrences on their behalf. Patients authenticated by PIN read their
own home screen and appointments and report symptoms.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinic.models import Occurrence
from clinic.permissions import IsPatient, IsProfessional
from clinic.serializers.occurrence import OccurrenceCreateSerializer, PatientOccurrenceSerializer
from clinic.serializers.patient import (
    PatientAppointmentsQuerySerializer,
    PatientCreateSerializer,
    PatientListQuerySerializer,
    PatientSearchQuerySerializer,
    PatientUpdateSerializer,
)
from clinic.services.appointments import format_appointment
from clinic.services.common import clamp_limit, clamp_offset
from clinic.services.occurrences import (
    create_occurrence,
    format_occurrence,
    list_occurrences,
    resolve_responsible_professional,
)
from clinic.services.patients import (
    create_patient,
    format_patient_summary,
    get_patient_or_404,
    list_patients,
    patient_detail,
    patient_home,
    search_patients,
    update_patient,
)


@api_view(['GET', 'POST'])
@permission_classes([IsProfessional])
def patients_collection(request):
    if request.method == 'POST':
        data = PatientCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        patient = create_patient(request.user, data.validated_data, request=request)
        return Response(
            patient_detail(patient),
            status=status.HTTP_201_CREATED,
            headers={'Location': f'/api/patients/{patient.id}'},
        )

    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    limit = clamp_limit(q.validated_data.get('limit'), default=20, maximum=100)
    offset = clamp_offset(q.validated_data.get('offset'))
    patients, total = list_patients(
        q=(q.validated_data.get('q') or '').strip() or None,
        status=q.validated_data.get('status'),
        stage=q.validated_data.get('stage'),
        limit=limit,
        offset=offset,
    )
    return Response({
        'data': [format_patient_summary(p) for p in patients],
        'meta': {'total': total, 'limit': limit, 'offset': offset},
    })


@api_view(['GET'])
@permission_classes([IsProfessional])
def patients_search(request):
    q = PatientSearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    limit = clamp_limit(q.validated_data.get('limit'), default=10, maximum=50)
    patients = search_patients(q.validated_data['q'], limit=limit)
    return Response({'data': [format_patient_summary(p) for p in patients]})


@api_view(['GET', 'PUT'])
@permission_classes([IsProfessional])
def patient_detail_view(request, pk: int):
    patient = get_patient_or_404(pk)
    if request.method == 'PUT':
        data = PatientUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        patient = update_patient(request.user, patient, data.validated_data, request=request)
    return Response(patient_detail(patient))


@api_view(['GET', 'POST'])
@permission_classes([IsProfessional])
def patient_occurrences(request, pk: int):
    patient = get_patient_or_404(pk)
    if request.method == 'POST':
        data = OccurrenceCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        vd = data.validated_data
        occurrence = create_occurrence(
            patient=patient,
            professional=request.user,
            kind=vd['kind'],
            intensity=vd['intensity'],
            source=vd['source'],
            notes=vd.get('notes'),
            actor=request.user,
            request=request,
        )
        return Response(format_occurrence(occurrence), status=status.HTTP_201_CREATED)
    return Response({'data': [format_occurrence(o) for o in list_occurrences(patient)]})


# ---------------------------------------------------------------------
# Patient self-service (PIN session)
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsPatient])
def patient_me(request):
    return Response(patient_home(request.user.patient))


@api_view(['GET'])
@permission_classes([IsPatient])
def patient_me_appointments(request):
    q = PatientAppointmentsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    limit = clamp_limit(q.validated_data.get('limit'), default=20, maximum=50)
    appointments = (
        request.user.patient.appointments.filter(starts_at__gte=timezone.now())
        .order_by('starts_at', 'id')[:limit]
    )
    return Response({'data': [format_appointment(a) for a in appointments]})


@api_view(['POST'])
@permission_classes([IsPatient])
def patient_me_occurrences(request):
    data = PatientOccurrenceSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    patient = request.user.patient
    occurrence = create_occurrence(
        patient=patient,
        professional=resolve_responsible_professional(patient),
        kind=data.validated_data['kind'],
        intensity=data.validated_data['intensity'],
        source=Occurrence.Source.PATIENT,
        notes=data.validated_data.get('notes'),
        request=request,
    )
    return Response(format_occurrence(occurrence), status=status.HTTP_201_CREATED)

