"""
Report views.

Each report covers one professional (the caller unless
``professionalId`` is given) over an inclusive UTC date range.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinic.permissions import IsProfessional
from clinic.serializers.report import ReportRangeQuerySerializer
from clinic.services.reports import get_report


def _report(request, name: str) -> Response:
    q = ReportRangeQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    professional_id = vd.get('professionalId') or request.user.id
    return Response(get_report(name, professional_id, vd['start'], vd['end']))


@api_view(['GET'])
@permission_classes([IsProfessional])
def attendance_report(request):
    return _report(request, 'attendance')


@api_view(['GET'])
@permission_classes([IsProfessional])
def wait_times_report(request):
    return _report(request, 'wait-times')


@api_view(['GET'])
@permission_classes([IsProfessional])
def adherence_report(request):
    return _report(request, 'adherence')


@api_view(['GET'])
@permission_classes([IsProfessional])
def alerts_report(request):
    return _report(request, 'alerts')
