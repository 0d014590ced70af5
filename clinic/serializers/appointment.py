from rest_framework import serializers

from clinic.models import Appointment


class AppointmentCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    professionalId = serializers.IntegerField(min_value=1, required=False)
    startsAt = serializers.DateTimeField()
    type = serializers.ChoiceField(choices=Appointment.Type.values)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=2000,
                                  trim_whitespace=False)


class AppointmentUpdateSerializer(serializers.Serializer):
    professionalId = serializers.IntegerField(min_value=1, required=False)
    startsAt = serializers.DateTimeField(required=False)
    type = serializers.ChoiceField(choices=Appointment.Type.values, required=False)
    status = serializers.ChoiceField(choices=Appointment.Status.values, required=False)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=2000,
                                  trim_whitespace=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Informe ao menos um campo para atualizar')
        return attrs


class AppointmentCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=2000)


class AppointmentDeclineSerializer(AppointmentCancelSerializer):
    pass


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Appointment.Status.values)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=2000)


class AppointmentListQuerySerializer(serializers.Serializer):
    day = serializers.DateField(required=False, input_formats=['%Y-%m-%d'])
    professionalId = serializers.IntegerField(min_value=1, required=False)
    patientId = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=Appointment.Status.values, required=False)
    limit = serializers.IntegerField(required=False)
    offset = serializers.IntegerField(required=False)
