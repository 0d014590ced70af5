"""
Appointment views.

Professionals schedule, edit, cancel and move appointments through
their lifecycle; patients confirm or decline their own.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinic.permissions import IsPatient, IsProfessional
from clinic.serializers.appointment import (
    AppointmentCancelSerializer,
    AppointmentCreateSerializer,
    AppointmentDeclineSerializer,
    AppointmentListQuerySerializer,
    AppointmentStatusSerializer,
    AppointmentUpdateSerializer,
)
from clinic.services.appointments import (
    appointment_detail,
    cancel_appointment,
    confirm_by_patient,
    create_appointment,
    decline_by_patient,
    format_appointment,
    get_appointment_or_404,
    list_appointments,
    update_appointment,
    update_appointment_status,
)
from clinic.services.common import clamp_limit, clamp_offset


@api_view(['GET', 'POST'])
@permission_classes([IsProfessional])
def appointments_collection(request):
    if request.method == 'POST':
        data = AppointmentCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        vd = data.validated_data
        appointment = create_appointment(
            request.user,
            patient_id=vd['patientId'],
            professional_id=vd.get('professionalId') or request.user.id,
            starts_at=vd['startsAt'],
            type=vd['type'],
            notes=vd.get('notes'),
            request=request,
        )
        return Response(format_appointment(appointment), status=status.HTTP_201_CREATED)

    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    appointments = list_appointments(
        professional_id=vd.get('professionalId') or request.user.id,
        patient_id=vd.get('patientId'),
        day=vd.get('day'),
        status=vd.get('status'),
        limit=clamp_limit(vd.get('limit'), default=20, maximum=100),
        offset=clamp_offset(vd.get('offset')),
    )
    return Response({'data': [format_appointment(a) for a in appointments]})


@api_view(['GET', 'PUT'])
@permission_classes([IsProfessional])
def appointment_detail_view(request, pk: int):
    appointment = get_appointment_or_404(pk)
    if request.method == 'PUT':
        data = AppointmentUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        appointment = update_appointment(request.user, appointment, data.validated_data, request=request)
        return Response(format_appointment(appointment))
    return Response(appointment_detail(appointment))


@api_view(['POST'])
@permission_classes([IsProfessional])
def appointment_cancel(request, pk: int):
    appointment = get_appointment_or_404(pk)
    data = AppointmentCancelSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    appointment = cancel_appointment(request.user, appointment, data.validated_data.get('reason'), request=request)
    return Response(format_appointment(appointment))


@api_view(['POST'])
@permission_classes([IsProfessional])
def appointment_status(request, pk: int):
    appointment = get_appointment_or_404(pk)
    data = AppointmentStatusSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    appointment = update_appointment_status(
        request.user, appointment, data.validated_data['status'], data.validated_data.get('notes'), request=request,
    )
    return Response(format_appointment(appointment))


@api_view(['POST'])
@permission_classes([IsPatient])
def appointment_confirm(request, pk: int):
    appointment = confirm_by_patient(request.user.patient, pk, request=request)
    return Response(format_appointment(appointment))


@api_view(['POST'])
@permission_classes([IsPatient])
def appointment_decline(request, pk: int):
    data = AppointmentDeclineSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    appointment = decline_by_patient(request.user.patient, pk, data.validated_data.get('reason'), request=request)
    return Response(format_appointment(appointment))
