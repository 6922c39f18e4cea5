"""
Attendance views.  Lecturers mark their own courses; students read a
per-course summary of their own attendance.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsLecturerOrAdmin, IsStudent
from portal.serializers.attendance import (
    AttendanceCreateSerializer,
    AttendanceQuerySerializer,
    AttendanceUpdateSerializer,
    StudentAttendanceQuerySerializer,
)
from portal.services import attendance as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsLecturerOrAdmin])
def attendance_list(request):
    if request.method == 'POST':
        s = AttendanceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        record = svc.record_attendance(
            request.user,
            course_id=vd['courseId'],
            date=vd['date'],
            topic=vd['topic'],
            attendees=vd['attendees'],
            absentees=vd['absentees'],
            late=vd['late'],
        )
        return Response({'ok': True, 'message': 'Attendance recorded successfully',
                         'data': svc.serialize_record(record, detailed=True)}, status=201)
    q = AttendanceQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_records(
        request.user,
        course_id=q.validated_data.get('course'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsLecturerOrAdmin])
def attendance_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_record(svc.get_record(request.user, pk), detailed=True)})
    if request.method == 'DELETE':
        svc.delete_record(request.user, pk)
        return Response({'ok': True, 'message': 'Attendance record deleted successfully'})
    s = AttendanceUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    record = svc.update_record(request.user, pk, dict(s.validated_data))
    return Response({'ok': True, 'message': 'Attendance updated successfully',
                     'data': svc.serialize_record(record, detailed=True)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsLecturerOrAdmin])
def attendance_overview(request):
    return Response({'ok': True, 'data': svc.lecturer_overview(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def my_attendance(request):
    q = StudentAttendanceQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': svc.student_attendance(request.user, course_id=q.validated_data.get('course'))})
