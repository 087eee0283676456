from datetime import datetime

from rest_framework import serializers


def validate_iso_date(value: str) -> str:
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except (TypeError, ValueError):
        raise serializers.ValidationError('Expected a date as YYYY-MM-DD')
    return value


class IsoDateField(serializers.CharField):
    def __init__(self, **kwargs):
        kwargs.setdefault('max_length', 10)
        super().__init__(**kwargs)
        self.validators.append(validate_iso_date)


class CreateDaySerializer(serializers.Serializer):
    date = IsoDateField()
    copyPrevious = serializers.BooleanField(required=False, default=False)


class PatchRecordSerializer(serializers.Serializer):
    patches = serializers.DictField(child=serializers.JSONField(), allow_empty=False)

    def validate_patches(self, v):
        for path in v:
            if not path or any(not part for part in path.split('.')):
                raise serializers.ValidationError(f'Invalid path "{path}"')
            if path.split('.')[0] in ('date', 'lastUpdated'):
                raise serializers.ValidationError(f'"{path}" cannot be patched')
        return v


class MonthQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    month = serializers.IntegerField(min_value=1, max_value=12)


class RangeQuerySerializer(serializers.Serializer):
    start = IsoDateField()
    end = IsoDateField()

    def validate(self, attrs):
        if attrs['start'] > attrs['end']:
            raise serializers.ValidationError('start must not be after end')
        return attrs
