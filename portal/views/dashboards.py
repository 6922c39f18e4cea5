"""
Dashboard endpoints, one per role plus ``/dashboard`` which picks the
caller's own.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsAdminRole, IsBursaryOrAdmin, IsHodOrAdmin, IsLecturerOrAdmin, IsStudent
from portal.services import dashboards as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_dashboard(request):
    return Response({'ok': True, 'data': svc.dashboard_for(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def student_dashboard(request):
    return Response({'ok': True, 'data': svc.student_dashboard(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsLecturerOrAdmin])
def lecturer_dashboard(request):
    return Response({'ok': True, 'data': svc.lecturer_dashboard(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHodOrAdmin])
def hod_dashboard(request):
    return Response({'ok': True, 'data': svc.hod_dashboard(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def bursary_dashboard(request):
    return Response({'ok': True, 'data': svc.bursary_dashboard(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    return Response({'ok': True, 'data': svc.admin_dashboard(request.user)})
