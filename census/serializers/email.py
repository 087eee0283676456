from rest_framework import serializers

from census.serializers.records import IsoDateField, validate_iso_date


class CensusEmailSerializer(serializers.Serializer):
    date = IsoDateField()
    record = serializers.DictField(required=False)
    records = serializers.ListField(child=serializers.DictField(), required=False)
    recipients = serializers.ListField(child=serializers.EmailField(), required=False, allow_empty=True)
    nursesSignature = serializers.CharField(max_length=256, required=False, allow_blank=True)
    body = serializers.CharField(max_length=10000, required=False, allow_blank=True)

    def validate(self, attrs):
        """Collect body records into ``records``, keeping only the month of ``date`` up to that day."""
        given = attrs.get('records')
        if given is None and attrs.get('record'):
            given = [attrs['record']]
        if given is None:
            return attrs
        for rec in given:
            if not isinstance(rec.get('beds', {}), dict):
                raise serializers.ValidationError('Each record needs a "date" and a "beds" map')
            try:
                validate_iso_date(rec.get('date'))
            except serializers.ValidationError:
                raise serializers.ValidationError(f'Invalid record date {rec.get("date")!r}, expected YYYY-MM-DD')
        month = attrs['date'][:7]
        attrs['records'] = [rec for rec in given if rec['date'][:7] == month and rec['date'] <= attrs['date']]
        return attrs
