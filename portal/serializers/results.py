from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class ResultCreateSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(min_value=1)
    courseId = serializers.IntegerField(min_value=1)
    sessionId = serializers.IntegerField(min_value=1)
    semester = serializers.ChoiceField(choices=['first', 'second'])
    caScore = serializers.FloatField()
    examScore = serializers.FloatField()

class ResultUpdateSerializer(serializers.Serializer):
    caScore = serializers.FloatField(required=False)
    examScore = serializers.FloatField(required=False)

class ResultListQuerySerializer(PageQuerySerializer):
    student = serializers.IntegerField(min_value=1, required=False)
    course = serializers.IntegerField(min_value=1, required=False)
    session = serializers.IntegerField(min_value=1, required=False)
    semester = serializers.ChoiceField(choices=['first', 'second'], required=False)
    published = serializers.BooleanField(required=False, allow_null=True, default=None)

class ResultRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')

class PublishSerializer(serializers.Serializer):
    sessionId = serializers.IntegerField(min_value=1)
    semester = serializers.ChoiceField(choices=['first', 'second'])

class SummaryQuerySerializer(serializers.Serializer):
    session = serializers.IntegerField(min_value=1, required=False)
    semester = serializers.ChoiceField(choices=['first', 'second'], required=False)
