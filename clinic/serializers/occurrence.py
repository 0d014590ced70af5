import bleach
from rest_framework import serializers

from clinic.models import Occurrence


class PatientOccurrenceSerializer(serializers.Serializer):
    kind = serializers.CharField(max_length=120)
    intensity = serializers.IntegerField(min_value=0, max_value=10)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=2000)

    def validate_kind(self, v):
        v = bleach.clean(v, tags=[], strip=True).strip()
        if not v:
            raise serializers.ValidationError('Informe o tipo da ocorrência')
        return v

    def validate_notes(self, v):
        return bleach.clean(v, tags=[], strip=True) if v else v


class OccurrenceCreateSerializer(PatientOccurrenceSerializer):
    source = serializers.ChoiceField(choices=Occurrence.Source.values, required=False,
                                     default=Occurrence.Source.PROFESSIONAL)
