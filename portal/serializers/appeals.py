from rest_framework import serializers

from portal.models import GradeAppeal
from portal.serializers.assignments import FileSerializer
from portal.serializers.common import PageQuerySerializer

class AppealCreateSerializer(serializers.Serializer):
    resultId = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    preferredResolution = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    attachments = FileSerializer(many=True, required=False, default=list)

class AppealStatusQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=GradeAppeal.STATUS_CHOICES, required=False)

class AppealListQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=GradeAppeal.STATUS_CHOICES, required=False)
    course = serializers.IntegerField(min_value=1, required=False)

class AppealReviewSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[GradeAppeal.STATUS_IN_REVIEW, GradeAppeal.STATUS_RESOLVED,
                                              GradeAppeal.STATUS_REJECTED])
    resolutionNote = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')
