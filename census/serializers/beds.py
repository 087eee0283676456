from rest_framework import serializers

from census.services.cudyr import CATEGORIES


class PatientFieldSerializer(serializers.Serializer):
    field = serializers.CharField(max_length=64)
    value = serializers.JSONField(allow_null=True)


class PatientFieldsSerializer(serializers.Serializer):
    values = serializers.DictField(child=serializers.JSONField(allow_null=True), allow_empty=False)


class CudyrSerializer(serializers.Serializer):
    field = serializers.ChoiceField(choices=list(CATEGORIES))
    value = serializers.JSONField()


class MoveSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=['move', 'copy'])
    sourceBedId = serializers.CharField(max_length=16)
    targetBedId = serializers.CharField(max_length=16)


class BlockSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
