from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinic.permissions import IsProfessional
from clinic.serializers.alert import AlertListQuerySerializer, AlertUpdateSerializer
from clinic.services.alerts import format_alert, get_alert, list_alerts, update_alert
from clinic.services.common import clamp_limit, clamp_offset


@api_view(['GET'])
@permission_classes([IsProfessional])
def alerts_list(request):
    """Alerts for the dashboard, newest first."""
    q = AlertListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    limit = clamp_limit(q.validated_data.get('limit'), default=20, maximum=100)
    offset = clamp_offset(q.validated_data.get('offset'))
    alerts, total = list_alerts(
        status=q.validated_data.get('status'),
        severity=q.validated_data.get('severity'),
        patient_id=q.validated_data.get('patientId'),
        limit=limit,
        offset=offset,
    )
    return Response({
        'data': [format_alert(a) for a in alerts],
        'meta': {'total': total, 'limit': limit, 'offset': offset},
    })


@api_view(['GET', 'PATCH'])
@permission_classes([IsProfessional])
def alert_detail_view(request, pk: int):
    if request.method == 'GET':
        return Response(format_alert(get_alert(pk)))
    data = AlertUpdateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    alert = update_alert(request.user, pk, data.validated_data, request=request)
    return Response(format_alert(alert))
