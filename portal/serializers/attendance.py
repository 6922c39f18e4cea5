from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class AttendanceCreateSerializer(serializers.Serializer):
    courseId = serializers.IntegerField(min_value=1)
    date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    topic = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    attendees = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)
    absentees = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)
    late = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)

class AttendanceUpdateSerializer(serializers.Serializer):
    topic = serializers.CharField(max_length=255, required=False, allow_blank=True)
    attendees = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    absentees = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    late = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)

class AttendanceQuerySerializer(PageQuerySerializer):
    course = serializers.IntegerField(min_value=1, required=False)

class StudentAttendanceQuerySerializer(serializers.Serializer):
    course = serializers.IntegerField(min_value=1, required=False)
