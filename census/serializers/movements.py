from rest_framework import serializers

from census.constants import DISCHARGE_ALIVE, DISCHARGE_STATUSES


class DischargeCreateSerializer(serializers.Serializer):
    bedId = serializers.CharField(max_length=16)
    status = serializers.ChoiceField(choices=list(DISCHARGE_STATUSES), default=DISCHARGE_ALIVE)
    dischargeType = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    time = serializers.RegexField(r'^\d{2}:\d{2}$', required=False)
    isNested = serializers.BooleanField(required=False, default=False)


class TransferCreateSerializer(serializers.Serializer):
    bedId = serializers.CharField(max_length=16)
    evacuationMethod = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    receivingCenter = serializers.CharField(max_length=128, required=False, allow_blank=True, default='')
    receivingCenterOther = serializers.CharField(max_length=128, required=False, allow_blank=True, default='')
    transferEscort = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    time = serializers.RegexField(r'^\d{2}:\d{2}$', required=False)
    isNested = serializers.BooleanField(required=False, default=False)


class CmaSerializer(serializers.Serializer):
    bedName = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')
    patientName = serializers.CharField(max_length=128)
    rut = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')
    age = serializers.CharField(max_length=16, required=False, allow_blank=True, default='')
    diagnosis = serializers.CharField(max_length=256, required=False, allow_blank=True, default='')
    specialty = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    interventionType = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')


class MovementUpdateSerializer(serializers.Serializer):
    changes = serializers.DictField(allow_empty=False)
