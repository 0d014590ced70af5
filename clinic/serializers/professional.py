import bleach
from rest_framework import serializers

from clinic.services.common import digits


class ProfessionalCreateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=3, max_length=120)
    email = serializers.EmailField(max_length=254)
    documentId = serializers.CharField(max_length=20)
    specialty = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=120)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    roles = serializers.ListField(child=serializers.CharField(max_length=32), required=False)

    def validate_name(self, v):
        return bleach.clean(v.strip(), tags=[], strip=True)


class OnboardingSerializer(serializers.Serializer):
    fullName = serializers.CharField(min_length=3, max_length=120)
    documentId = serializers.CharField(max_length=20)
    specialty = serializers.CharField(min_length=2, max_length=120)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)

    def validate_documentId(self, v):
        v = digits(v)
        if len(v) != 11:
            raise serializers.ValidationError('Documento deve conter 11 dígitos')
        return v

    def validate_phone(self, v):
        if not v:
            return None
        if len(digits(v)) < 10:
            raise serializers.ValidationError('Telefone deve conter ao menos 10 dígitos')
        return v


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, min_length=3, max_length=120)
    specialty = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=120)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    # Size and format are checked in the service so the error message is uniform
    avatarDataUrl = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Informe ao menos um campo para atualizar')
        return attrs


class PasswordChangeSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(trim_whitespace=False)
    newPassword = serializers.CharField(trim_whitespace=False, min_length=8, max_length=128)


class DirectoryQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, max_length=120)
    status = serializers.ChoiceField(choices=['active', 'inactive'], required=False)
    includeSummary = serializers.BooleanField(required=False, default=False)
    limit = serializers.IntegerField(required=False)
    offset = serializers.IntegerField(required=False)
