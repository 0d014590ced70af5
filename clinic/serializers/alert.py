from rest_framework import serializers

from clinic.models import Alert


class AlertUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Alert.Status.values, required=False)
    details = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=2000)
    resolvedAt = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Informe ao menos um campo para atualizar')
        return attrs


class AlertListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Alert.Status.values, required=False)
    severity = serializers.ChoiceField(choices=Alert.Severity.values, required=False)
    patientId = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(required=False)
    offset = serializers.IntegerField(required=False)
