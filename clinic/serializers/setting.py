from rest_framework import serializers


class SettingUpdateSerializer(serializers.Serializer):
    value = serializers.JSONField(allow_null=True)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
