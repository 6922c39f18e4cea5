from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class ScheduleSlotSerializer(serializers.Serializer):
    day = serializers.ChoiceField(choices=['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday'])
    startTime = serializers.RegexField(r'^\d{2}:\d{2}$')
    endTime = serializers.RegexField(r'^\d{2}:\d{2}$')
    venue = serializers.CharField(max_length=128, required=False, allow_blank=True)

class CourseListQuerySerializer(PageQuerySerializer):
    department = serializers.IntegerField(min_value=1, required=False)
    level = serializers.IntegerField(min_value=100, required=False)
    semester = serializers.ChoiceField(choices=['first', 'second'], required=False)
    search = serializers.CharField(max_length=64, required=False)

class CourseWriteSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    credits = serializers.IntegerField(min_value=1, max_value=12, required=False)
    level = serializers.IntegerField(min_value=100, max_value=900, required=False)
    semester = serializers.ChoiceField(choices=['first', 'second'], required=False)
    departmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    lecturerId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    sessionId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    schedule = ScheduleSlotSerializer(many=True, required=False)
    capacity = serializers.IntegerField(min_value=1, required=False)

    FIELD_MAP = {
        'code': 'code',
        'title': 'title',
        'description': 'description',
        'credits': 'credits',
        'level': 'level',
        'semester': 'semester',
        'departmentId': 'department_id',
        'lecturerId': 'lecturer_id',
        'sessionId': 'session_id',
        'schedule': 'schedule',
        'capacity': 'capacity',
    }

    def validate_code(self, v):
        return v.strip().upper()

    def to_model_fields(self) -> dict:
        data = {self.FIELD_MAP[k]: v for k, v in self.validated_data.items()}
        if 'schedule' in data:
            data['schedule'] = [dict(slot) for slot in data['schedule']]
        return data

class AvailableCoursesQuerySerializer(serializers.Serializer):
    semester = serializers.ChoiceField(choices=['first', 'second'], required=False)
    level = serializers.IntegerField(min_value=100, required=False)
    department = serializers.IntegerField(min_value=1, required=False)

class BulkEnrollSerializer(serializers.Serializer):
    courseIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=True)
