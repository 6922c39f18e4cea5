"""
Assignment views: lecturers post and mark, students submit once.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import Forbidden
from portal.permissions import ADMIN, LECTURER, IsLecturerOrAdmin, IsStudent, has_role
from portal.serializers.assignments import (
    AssignmentCreateSerializer,
    AssignmentListQuerySerializer,
    AssignmentUpdateSerializer,
    GradeSubmissionSerializer,
    SubmissionSerializer,
)
from portal.services import assignments as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def assignment_list(request):
    if request.method == 'POST':
        if not has_role(request.user, LECTURER, ADMIN):
            raise Forbidden('Only lecturers can create assignments')
        s = AssignmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        assignment = svc.create_assignment(
            request.user,
            course_id=vd['courseId'],
            title=vd['title'],
            description=vd['description'],
            due_date=vd['dueDate'],
            total_marks=vd['totalMarks'],
            attachments=[dict(f) for f in vd['attachments']],
            allow_late_submission=vd['allowLateSubmission'],
            late_penalty=vd['latePenalty'],
        )
        return Response({'ok': True, 'message': 'Assignment created successfully',
                         'data': svc.serialize_assignment(assignment)}, status=201)
    q = AssignmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_assignments(
        request.user,
        course_id=q.validated_data.get('course'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def assignment_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_assignment(svc.get_assignment(request.user, pk))})
    if not has_role(request.user, LECTURER, ADMIN):
        raise Forbidden('Only lecturers can manage assignments')
    if request.method == 'DELETE':
        svc.delete_assignment(request.user, pk)
        return Response({'ok': True, 'message': 'Assignment deleted successfully'})
    s = AssignmentUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    assignment = svc.update_assignment(request.user, pk, s.to_model_fields())
    return Response({'ok': True, 'message': 'Assignment updated successfully',
                     'data': svc.serialize_assignment(assignment)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def assignment_submit(request, pk):
    s = SubmissionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    submission = svc.submit(request.user, pk, files=[dict(f) for f in s.validated_data['files']],
                            comment=s.validated_data['comment'])
    return Response({'ok': True, 'message': 'Assignment submitted successfully',
                     'data': svc.serialize_submission(submission)}, status=201)

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsLecturerOrAdmin])
def assignment_submissions(request, pk):
    return Response({'ok': True, 'data': svc.list_submissions(request.user, pk)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsLecturerOrAdmin])
def assignment_grade(request, pk, submission_id):
    s = GradeSubmissionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    submission = svc.grade_submission(request.user, pk, submission_id, grade=s.validated_data['grade'],
                                      feedback=s.validated_data['feedback'])
    return Response({'ok': True, 'message': 'Submission graded successfully',
                     'data': svc.serialize_submission(submission)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def assignment_my_submission(request, pk):
    return Response({'ok': True, 'data': svc.serialize_submission(svc.my_submission(request.user, pk))})
