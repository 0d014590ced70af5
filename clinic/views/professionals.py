"""
Professional directory and self-service profile views.

Administrators invite and remove professionals; any professional can
browse the directory and manage their own profile. Onboarding is open
to every logged-in account so that a freshly invited user without a
role can complete their registration.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinic.permissions import IsAdmin, IsProfessional, IsStaffUser
from clinic.serializers.professional import (
    DirectoryQuerySerializer,
    OnboardingSerializer,
    PasswordChangeSerializer,
    ProfessionalCreateSerializer,
    ProfileUpdateSerializer,
)
from clinic.services.common import clamp_limit, clamp_offset
from clinic.services.professionals import (
    change_password,
    delete_professional,
    directory,
    format_professional,
    invite_professional,
    onboard,
    summary,
    update_profile,
)


class IsAdminForWrites(IsAdmin):
    """Directory reads for professionals, invitations for administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method == 'POST':
            return super().has_permission(request, view)
        return IsProfessional().has_permission(request, view)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminForWrites])
def professionals_collection(request):
    if request.method == 'POST':
        data = ProfessionalCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        user = invite_professional(request.user, data.validated_data, request=request)
        return Response(format_professional(user), status=status.HTTP_201_CREATED)

    q = DirectoryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    limit = clamp_limit(q.validated_data.get('limit'), default=50, maximum=100)
    offset = clamp_offset(q.validated_data.get('offset'))
    items, total = directory(
        q=(q.validated_data.get('q') or '').strip() or None,
        status=q.validated_data.get('status'),
        limit=limit,
        offset=offset,
    )
    payload = {'data': items, 'meta': {'total': total, 'limit': limit, 'offset': offset}}
    if q.validated_data.get('includeSummary'):
        payload['summary'] = summary()
    return Response(payload)


@api_view(['DELETE'])
@permission_classes([IsAdmin])
def professional_delete(request, pk: int):
    delete_professional(request.user, pk, request=request)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsStaffUser])
def professional_onboarding(request):
    data = OnboardingSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    return Response(onboard(request.user, data.validated_data, request=request))


@api_view(['GET', 'PATCH'])
@permission_classes([IsProfessional])
def professional_me(request):
    if request.method == 'PATCH':
        data = ProfileUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        update_profile(request.user, data.validated_data, request=request)
    return Response(format_professional(request.user))


@api_view(['POST'])
@permission_classes([IsStaffUser])
def professional_me_password(request):
    data = PasswordChangeSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    change_password(
        request.user,
        data.validated_data['currentPassword'],
        data.validated_data['newPassword'],
        request=request,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)
