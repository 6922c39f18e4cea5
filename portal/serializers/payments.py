from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer
from portal.services.payments import PAYMENT_STATUSES, PAYMENT_TYPES

class PaymentInitSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PAYMENT_TYPES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=1)
    sessionId = serializers.IntegerField(min_value=1)
    semester = serializers.CharField(max_length=20)

class PaymentVerifySerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=64)

class PaymentListQuerySerializer(PageQuerySerializer):
    student = serializers.IntegerField(min_value=1, required=False)
    type = serializers.ChoiceField(choices=PAYMENT_TYPES, required=False)
    status = serializers.ChoiceField(choices=PAYMENT_STATUSES, required=False)
    session = serializers.IntegerField(min_value=1, required=False)
    semester = serializers.CharField(max_length=20, required=False)

class PaymentRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')

class PaymentStatsQuerySerializer(serializers.Serializer):
    session = serializers.IntegerField(min_value=1, required=False)
    semester = serializers.CharField(max_length=20, required=False)

class FeeQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PAYMENT_TYPES)
    level = serializers.IntegerField(min_value=100, max_value=900, required=False)
