from rest_framework import serializers


class ReportRangeQuerySerializer(serializers.Serializer):
    start = serializers.DateField(input_formats=['%Y-%m-%d'])
    end = serializers.DateField(input_formats=['%Y-%m-%d'])
    professionalId = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs):
        if attrs['start'] > attrs['end']:
            raise serializers.ValidationError({'start': ['Data inicial deve ser anterior à final']})
        return attrs
