from rest_framework import serializers

SHIFT_CHOICES = ['day', 'night']


class NursingNoteSerializer(serializers.Serializer):
    bedId = serializers.CharField(max_length=16)
    shift = serializers.ChoiceField(choices=SHIFT_CHOICES)
    value = serializers.CharField(allow_blank=True, max_length=4000)
    isNested = serializers.BooleanField(required=False, default=False)


class MedicalNoteSerializer(serializers.Serializer):
    bedId = serializers.CharField(max_length=16)
    value = serializers.CharField(allow_blank=True, max_length=4000)
    isNested = serializers.BooleanField(required=False, default=False)


class ChecklistSerializer(serializers.Serializer):
    shift = serializers.ChoiceField(choices=SHIFT_CHOICES)
    field = serializers.RegexField(r'^[A-Za-z0-9_]+$', max_length=64)
    value = serializers.JSONField(allow_null=True)


class NovedadesSerializer(serializers.Serializer):
    shift = serializers.ChoiceField(choices=SHIFT_CHOICES)
    text = serializers.CharField(allow_blank=True, max_length=8000)


class StaffSerializer(serializers.Serializer):
    shift = serializers.ChoiceField(choices=SHIFT_CHOICES)
    role = serializers.ChoiceField(choices=['delivers', 'receives', 'tens', 'nurses'])
    names = serializers.ListField(child=serializers.CharField(max_length=128, allow_blank=True), allow_empty=True)


class MedicalSentSerializer(serializers.Serializer):
    doctorName = serializers.CharField(max_length=128, required=False, allow_blank=True)
