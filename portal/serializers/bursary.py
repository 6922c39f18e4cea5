from rest_framework import serializers

class OverviewQuerySerializer(serializers.Serializer):
    session = serializers.IntegerField(min_value=1, required=False)
    status = serializers.CharField(max_length=20, required=False)
    type = serializers.CharField(max_length=20, required=False)
    startDate = serializers.CharField(max_length=40, required=False)
    endDate = serializers.CharField(max_length=40, required=False)
    academicYear = serializers.CharField(max_length=20, required=False)
    scholarshipStatus = serializers.CharField(max_length=20, required=False)

class ReportGenerateSerializer(serializers.Serializer):
    format = serializers.CharField(max_length=10, required=False, default='json')
    filters = serializers.DictField(required=False, default=dict)
    limit = serializers.IntegerField(required=False, default=500)
    includeScholarships = serializers.BooleanField(required=False, default=False)
