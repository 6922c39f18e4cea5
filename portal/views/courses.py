"""
Course catalogue and enrollment views.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import Forbidden
from portal.permissions import ACADEMIC_ROLES, IsAcademicStaff, IsStudent, has_role
from portal.serializers.courses import CourseListQuerySerializer, CourseWriteSerializer
from portal.serializers.common import PageQuerySerializer
from portal.services import courses as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def course_list(request):
    if request.method == 'POST':
        if not has_role(request.user, *ACADEMIC_ROLES):
            raise Forbidden('Only academic staff can create courses')
        s = CourseWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        course = svc.create_course(request.user, s.to_model_fields())
        return Response({'ok': True, 'message': 'Course created successfully', 'data': svc.serialize_course(course)},
                        status=201)
    q = CourseListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data, pagination = svc.list_courses(
        department=vd.get('department'),
        level=vd.get('level'),
        semester=vd.get('semester'),
        search=vd.get('search'),
        page=vd.get('page', 1),
        page_size=vd.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def course_detail(request, pk):
    if request.method == 'GET':
        course = svc.get_course(pk)
        return Response({'ok': True, 'data': svc.serialize_course(course, svc.active_enrollment_count(course))})
    if not has_role(request.user, *ACADEMIC_ROLES):
        raise Forbidden('Only academic staff can manage courses')
    if request.method == 'DELETE':
        svc.delete_course(request.user, pk)
        return Response({'ok': True, 'message': 'Course deleted successfully'})
    s = CourseWriteSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    course = svc.update_course(request.user, pk, s.to_model_fields())
    return Response({'ok': True, 'message': 'Course updated successfully', 'data': svc.serialize_course(course)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def course_enroll(request, pk):
    enrollment = svc.enroll(request.user, pk)
    return Response({'ok': True, 'message': 'Enrolled successfully', 'data': svc.serialize_enrollment(enrollment)},
                    status=201)

@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, IsStudent])
def course_unenroll(request, pk):
    enrollment = svc.unenroll(request.user, pk)
    return Response({'ok': True, 'message': 'Unenrolled successfully', 'data': svc.serialize_enrollment(enrollment)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAcademicStaff])
def course_students(request, pk):
    q = PageQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.enrolled_students(
        request.user, pk, page=q.validated_data.get('page', 1), page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})
