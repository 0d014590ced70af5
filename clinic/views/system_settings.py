from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinic.models import Setting
from clinic.permissions import IsAdmin
from clinic.serializers.setting import SettingUpdateSerializer
from clinic.services.settings import format_setting, upsert_setting


@api_view(['GET'])
@permission_classes([IsAdmin])
def settings_list(request):
    return Response({'data': [format_setting(s) for s in Setting.objects.order_by('key')]})


@api_view(['PUT'])
@permission_classes([IsAdmin])
def setting_update(request, key: str):
    data = SettingUpdateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    setting = upsert_setting(
        request.user,
        key,
        data.validated_data['value'],
        data.validated_data.get('description'),
        request=request,
    )
    return Response(format_setting(setting))
