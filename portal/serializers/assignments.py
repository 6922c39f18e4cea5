from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class FileSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    url = serializers.URLField(max_length=1024)
    size = serializers.IntegerField(min_value=0, required=False)

class AssignmentCreateSerializer(serializers.Serializer):
    courseId = serializers.IntegerField(min_value=1)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    dueDate = serializers.DateTimeField()
    totalMarks = serializers.IntegerField(min_value=1, required=False, default=100)
    attachments = FileSerializer(many=True, required=False, default=list)
    allowLateSubmission = serializers.BooleanField(required=False, default=False)
    latePenalty = serializers.IntegerField(min_value=0, max_value=100, required=False, default=0)

class AssignmentUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False)
    dueDate = serializers.DateTimeField(required=False)
    totalMarks = serializers.IntegerField(min_value=1, required=False)
    attachments = FileSerializer(many=True, required=False)
    allowLateSubmission = serializers.BooleanField(required=False)
    latePenalty = serializers.IntegerField(min_value=0, max_value=100, required=False)

    FIELD_MAP = {
        'title': 'title',
        'description': 'description',
        'dueDate': 'due_date',
        'totalMarks': 'total_marks',
        'attachments': 'attachments',
        'allowLateSubmission': 'allow_late_submission',
        'latePenalty': 'late_penalty',
    }

    def to_model_fields(self) -> dict:
        data = {self.FIELD_MAP[k]: v for k, v in self.validated_data.items()}
        if 'attachments' in data:
            data['attachments'] = [dict(f) for f in data['attachments']]
        return data

class AssignmentListQuerySerializer(PageQuerySerializer):
    course = serializers.IntegerField(min_value=1, required=False)

class SubmissionSerializer(serializers.Serializer):
    files = FileSerializer(many=True, required=False, default=list)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')

class GradeSubmissionSerializer(serializers.Serializer):
    grade = serializers.FloatField()
    feedback = serializers.CharField(max_length=5000, required=False, allow_blank=True, default='')
