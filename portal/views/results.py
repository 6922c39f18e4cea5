"""
Result entry, approval chain, publishing and transcripts.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import Forbidden
from portal.permissions import ADMIN, LECTURER, IsAdminRole, IsHodOrAdmin, IsStudent, has_role
from portal.serializers.results import (
    PublishSerializer,
    ResultCreateSerializer,
    ResultListQuerySerializer,
    ResultRejectSerializer,
    ResultUpdateSerializer,
    SummaryQuerySerializer,
)
from portal.services import results as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def result_list(request):
    if request.method == 'POST':
        if not has_role(request.user, LECTURER, ADMIN):
            raise Forbidden('Only lecturers can enter results')
        s = ResultCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        result = svc.create_result(
            request.user,
            student_id=vd['studentId'],
            course_id=vd['courseId'],
            session_id=vd['sessionId'],
            semester=vd['semester'],
            ca_score=vd['caScore'],
            exam_score=vd['examScore'],
        )
        return Response({'ok': True, 'message': 'Result created successfully', 'data': svc.serialize_result(result)},
                        status=201)
    q = ResultListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data, pagination = svc.list_results(
        request.user,
        student_id=vd.get('student'),
        course_id=vd.get('course'),
        session_id=vd.get('session'),
        semester=vd.get('semester'),
        published=vd.get('published'),
        page=vd.get('page', 1),
        page_size=vd.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def result_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_result(svc.get_result(request.user, pk))})
    if request.method == 'DELETE':
        if not has_role(request.user, ADMIN):
            raise Forbidden('Only administrators can delete results')
        svc.delete_result(request.user, pk)
        return Response({'ok': True, 'message': 'Result deleted successfully'})
    if not has_role(request.user, LECTURER, ADMIN):
        raise Forbidden('Only lecturers can update results')
    s = ResultUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = svc.update_result(
        request.user, pk, ca_score=s.validated_data.get('caScore'), exam_score=s.validated_data.get('examScore'),
    )
    return Response({'ok': True, 'message': 'Result updated successfully', 'data': svc.serialize_result(result)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsHodOrAdmin])
def result_hod_approve(request, pk):
    result = svc.hod_approve(request.user, pk)
    return Response({'ok': True, 'message': 'Result approved by HOD', 'data': svc.serialize_result(result)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsHodOrAdmin])
def result_hod_reject(request, pk):
    s = ResultRejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = svc.hod_reject(request.user, pk, s.validated_data['reason'])
    return Response({'ok': True, 'message': 'Result rejected by HOD', 'data': svc.serialize_result(result)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def result_admin_approve(request, pk):
    result = svc.admin_approve(request.user, pk)
    return Response({'ok': True, 'message': 'Result approved by admin', 'data': svc.serialize_result(result)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def result_publish(request):
    s = PublishSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    count = svc.publish(request.user, session_id=s.validated_data['sessionId'], semester=s.validated_data['semester'])
    return Response({'ok': True, 'message': f'{count} result(s) published', 'data': {'modifiedCount': count}})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def result_transcript(request, student_id):
    return Response({'ok': True, 'data': svc.transcript(request.user, student_id)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def my_transcript(request):
    return Response({'ok': True, 'data': svc.transcript(request.user, request.user.id)})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def result_summary(request, student_id):
    q = SummaryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data = svc.summary(
        request.user, student_id, session_id=q.validated_data.get('session'), semester=q.validated_data.get('semester'),
    )
    return Response({'ok': True, 'data': data})
