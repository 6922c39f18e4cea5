"""
Student self-service views: timetable, course registration, ID card.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsStudent
from portal.serializers.courses import AvailableCoursesQuerySerializer, BulkEnrollSerializer
from portal.services import courses as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def student_timetable(request):
    return Response({'ok': True, 'data': svc.timetable(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def student_available_courses(request):
    q = AvailableCoursesQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data = svc.available_courses(
        request.user,
        semester=q.validated_data.get('semester'),
        level=q.validated_data.get('level'),
        department=q.validated_data.get('department'),
    )
    return Response({'ok': True, 'data': data})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def student_bulk_enroll(request):
    s = BulkEnrollSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = svc.bulk_enroll(request.user, s.validated_data['courseIds'])
    return Response({'ok': True, 'message': f"Enrolled in {result['enrolled']} course(s)", 'data': result}, status=201)

@api_view(['DELETE', 'POST'])
@permission_classes([IsAuthenticated, IsStudent])
def student_drop_course(request, course_id):
    enrollment = svc.unenroll(request.user, course_id)
    return Response({'ok': True, 'message': 'Course dropped successfully', 'data': svc.serialize_enrollment(enrollment)})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def student_id_card(request):
    return Response({'ok': True, 'data': svc.id_card(request.user)})
