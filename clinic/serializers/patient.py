from rest_framework import serializers

from clinic.models import Patient
from clinic.serializers.auth import PIN_PATTERN
from clinic.services.common import clean_text, digits

MAX_CONTACTS = 20


class ContactSerializer(serializers.Serializer):
    fullName = serializers.CharField(min_length=2, max_length=160)
    relation = serializers.CharField(max_length=60)
    phone = serializers.CharField(max_length=20)
    isPrimary = serializers.BooleanField(required=False, default=False)

    def validate_fullName(self, v):
        return clean_text(v) or ''

    def validate_relation(self, v):
        return clean_text(v) or ''


class PatientFieldsMixin:
    """Normalisation shared by the create and update payloads."""

    def validate_fullName(self, v):
        v = clean_text(v) or ''
        if len(v) < 3:
            raise serializers.ValidationError('Nome deve ter ao menos 3 caracteres')
        return v

    def validate_cpf(self, v):
        v = digits(v)
        if len(v) != 11:
            raise serializers.ValidationError('CPF deve conter 11 dígitos')
        return v

    def validate_pin(self, v):
        if not PIN_PATTERN.match(v or ''):
            raise serializers.ValidationError('PIN deve conter de 4 a 6 dígitos')
        return v

    def validate_phone(self, v):
        return clean_text(v)

    def validate_emergencyPhone(self, v):
        return clean_text(v)

    def validate_tumorType(self, v):
        return clean_text(v)

    def validate_clinicalUnit(self, v):
        return clean_text(v)

    def validate_audioMaterialUrl(self, v):
        return v or None


class PatientCreateSerializer(PatientFieldsMixin, serializers.Serializer):
    fullName = serializers.CharField(max_length=160)
    cpf = serializers.CharField(max_length=14)
    pin = serializers.CharField(max_length=6)
    birthDate = serializers.DateField(required=False, allow_null=True, input_formats=['%Y-%m-%d'])
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    emergencyPhone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    tumorType = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=120)
    clinicalUnit = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=120)
    stage = serializers.ChoiceField(choices=Patient.Stage.values, required=False)
    status = serializers.ChoiceField(choices=Patient.Status.values, required=False)
    audioMaterialUrl = serializers.URLField(required=False, allow_null=True, allow_blank=True, max_length=500)
    contacts = ContactSerializer(many=True, required=False)

    def validate_contacts(self, v):
        if len(v) > MAX_CONTACTS:
            raise serializers.ValidationError(f'No máximo {MAX_CONTACTS} contatos')
        return v


class PatientUpdateSerializer(PatientFieldsMixin, serializers.Serializer):
    fullName = serializers.CharField(required=False, max_length=160)
    cpf = serializers.CharField(required=False, max_length=14)
    pin = serializers.CharField(required=False, max_length=6)
    birthDate = serializers.DateField(required=False, allow_null=True, input_formats=['%Y-%m-%d'])
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    emergencyPhone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    tumorType = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=120)
    clinicalUnit = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=120)
    stage = serializers.ChoiceField(choices=Patient.Stage.values, required=False)
    status = serializers.ChoiceField(choices=Patient.Status.values, required=False)
    audioMaterialUrl = serializers.URLField(required=False, allow_null=True, allow_blank=True, max_length=500)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs):
        if not set(attrs) - {'reason'}:
            raise serializers.ValidationError('Informe ao menos um campo para atualizar')
        return attrs


class PatientListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, max_length=160)
    status = serializers.ChoiceField(choices=Patient.Status.values, required=False)
    stage = serializers.ChoiceField(choices=Patient.Stage.values, required=False)
    limit = serializers.IntegerField(required=False)
    offset = serializers.IntegerField(required=False)


class PatientSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(min_length=1, max_length=160)
    limit = serializers.IntegerField(required=False)


class PatientAppointmentsQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False)
