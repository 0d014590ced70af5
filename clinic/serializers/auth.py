import re

from rest_framework import serializers

from clinic.services.common import digits

PIN_PATTERN = re.compile(r'^[0-9]{4,6}$')


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(max_length=254)
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, v):
        v = (v or '').strip().lower()
        if not v:
            raise serializers.ValidationError('E-mail é obrigatório')
        return v


class PatientPinLoginSerializer(serializers.Serializer):
    cpf = serializers.CharField(max_length=14)
    pin = serializers.CharField(max_length=6)

    def validate_cpf(self, v):
        v = digits(v)
        if len(v) != 11:
            raise serializers.ValidationError('CPF deve conter 11 dígitos')
        return v

    def validate_pin(self, v):
        if not PIN_PATTERN.match(v or ''):
            raise serializers.ValidationError('PIN deve conter de 4 a 6 dígitos')
        return v


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)
