from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class EligibilitySerializer(serializers.Serializer):
    minCGPA = serializers.FloatField(min_value=0, max_value=5, required=False, allow_null=True)
    levels = serializers.ListField(child=serializers.IntegerField(min_value=100), required=False)
    departments = serializers.ListField(child=serializers.CharField(max_length=64), required=False)

class ScholarshipCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    eligibilityCriteria = EligibilitySerializer(required=False)
    availableSlots = serializers.IntegerField(min_value=1, required=False, default=1)
    applicationDeadline = serializers.DateTimeField()
    academicYear = serializers.CharField(max_length=20, required=False)

    def to_model_fields(self) -> dict:
        d = self.validated_data
        data = {
            'name': d['name'],
            'description': d['description'],
            'amount': d['amount'],
            'eligibility_criteria': dict(d.get('eligibilityCriteria') or {}),
            'available_slots': d['availableSlots'],
            'application_deadline': d['applicationDeadline'],
        }
        if d.get('academicYear'):
            data['academic_year'] = d['academicYear']
        return data

class ScholarshipApplySerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=5000, required=False, allow_blank=True, default='')
    documents = serializers.ListField(child=serializers.CharField(max_length=512), required=False, default=list)
    financialInfo = serializers.DictField(required=False, default=dict)

class ScholarshipApplicationsQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=['pending', 'approved', 'rejected'], required=False)
    scholarshipId = serializers.IntegerField(min_value=1, required=False)

class ScholarshipApproveSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')

class ScholarshipRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
