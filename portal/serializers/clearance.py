from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer
from portal.services.clearance import DEPARTMENT_STATUSES, DOCUMENT_STATUSES

class DocumentRequestSerializer(serializers.Serializer):
    documentType = serializers.CharField(max_length=64)
    purpose = serializers.CharField(max_length=255)
    deliveryMethod = serializers.CharField(max_length=64)
    urgency = serializers.ChoiceField(choices=['normal', 'urgent'], required=False, default='normal')

class ClearanceListQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=['in-progress', 'completed', 'rejected'], required=False)
    department = serializers.CharField(max_length=64, required=False)

class DepartmentStatusSerializer(serializers.Serializer):
    departmentName = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=DEPARTMENT_STATUSES)
    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

class ClearanceApproveSerializer(serializers.Serializer):
    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

class ClearanceRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    departmentName = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)

class DocumentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DOCUMENT_STATUSES)
