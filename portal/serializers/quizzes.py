from rest_framework import serializers

from portal.models import Quiz
from portal.serializers.common import PageQuerySerializer

class QuestionSerializer(serializers.Serializer):
    question = serializers.CharField(max_length=2000)
    type = serializers.ChoiceField(choices=Quiz.QUESTION_TYPES)
    options = serializers.ListField(child=serializers.CharField(max_length=500), required=False, default=list)
    correctAnswer = serializers.CharField(max_length=500)
    marks = serializers.IntegerField(min_value=1)

class QuizCreateSerializer(serializers.Serializer):
    courseId = serializers.IntegerField(min_value=1)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    duration = serializers.IntegerField(min_value=1, max_value=600)
    totalMarks = serializers.IntegerField(min_value=1)
    startDate = serializers.DateTimeField()
    endDate = serializers.DateTimeField()
    questions = QuestionSerializer(many=True)

class QuizUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    duration = serializers.IntegerField(min_value=1, max_value=600, required=False)
    totalMarks = serializers.IntegerField(min_value=1, required=False)
    startDate = serializers.DateTimeField(required=False)
    endDate = serializers.DateTimeField(required=False)
    questions = QuestionSerializer(many=True, required=False)
    isActive = serializers.BooleanField(required=False)

    FIELD_MAP = {
        'title': 'title',
        'description': 'description',
        'duration': 'duration',
        'totalMarks': 'total_marks',
        'startDate': 'start_date',
        'endDate': 'end_date',
        'questions': 'questions',
        'isActive': 'is_active',
    }

    def to_model_fields(self) -> dict:
        data = {self.FIELD_MAP[k]: v for k, v in self.validated_data.items()}
        if 'questions' in data:
            data['questions'] = [dict(q) for q in data['questions']]
        return data

class QuizListQuerySerializer(PageQuerySerializer):
    course = serializers.IntegerField(min_value=1, required=False)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)

class AnswerSerializer(serializers.Serializer):
    questionIndex = serializers.IntegerField(min_value=0)
    answer = serializers.CharField(max_length=500, allow_blank=True)

class QuizSubmitSerializer(serializers.Serializer):
    answers = AnswerSerializer(many=True)
