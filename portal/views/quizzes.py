"""
Quiz views.  Students only ever receive questions without answers.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import Forbidden
from portal.permissions import ADMIN, LECTURER, IsLecturerOrAdmin, IsStudent, has_role
from portal.serializers.quizzes import (
    QuizCreateSerializer,
    QuizListQuerySerializer,
    QuizSubmitSerializer,
    QuizUpdateSerializer,
)
from portal.services import quizzes as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def quiz_list(request):
    if request.method == 'POST':
        if not has_role(request.user, LECTURER, ADMIN):
            raise Forbidden('Only lecturers can create quizzes')
        s = QuizCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        quiz = svc.create_quiz(
            request.user,
            course_id=vd['courseId'],
            title=vd['title'],
            description=vd['description'],
            duration=vd['duration'],
            total_marks=vd['totalMarks'],
            start_date=vd['startDate'],
            end_date=vd['endDate'],
            questions=[dict(q) for q in vd['questions']],
        )
        return Response({'ok': True, 'message': 'Quiz created successfully', 'data': svc.serialize_quiz(quiz)},
                        status=201)
    q = QuizListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_quizzes(
        request.user,
        course_id=q.validated_data.get('course'),
        active=q.validated_data.get('active'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def quiz_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.get_quiz(request.user, pk)})
    if not has_role(request.user, LECTURER, ADMIN):
        raise Forbidden('Only lecturers can manage quizzes')
    if request.method == 'DELETE':
        svc.delete_quiz(request.user, pk)
        return Response({'ok': True, 'message': 'Quiz deleted successfully'})
    s = QuizUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    quiz = svc.update_quiz(request.user, pk, s.to_model_fields())
    return Response({'ok': True, 'message': 'Quiz updated successfully', 'data': svc.serialize_quiz(quiz)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def quiz_start(request, pk):
    attempt, quiz = svc.start_quiz(request.user, pk)
    return Response({
        'ok': True,
        'message': 'Quiz started',
        'data': {
            'attemptId': attempt.id,
            'startedAt': attempt.started_at.isoformat(),
            'quiz': svc.serialize_quiz(quiz, hide_answers=True),
        },
    }, status=201)

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def quiz_submit(request, pk):
    s = QuizSubmitSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    attempt = svc.submit_quiz(request.user, pk, [dict(a) for a in s.validated_data['answers']])
    return Response({'ok': True, 'message': 'Quiz submitted successfully', 'data': svc.serialize_attempt(attempt)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsLecturerOrAdmin])
def quiz_attempts(request, pk):
    return Response({'ok': True, 'data': svc.quiz_attempts(request.user, pk)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def quiz_my_attempt(request, pk):
    return Response({'ok': True, 'data': svc.my_attempt(request.user, pk)})
