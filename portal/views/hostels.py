"""
Hostel, application and room allocation views.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import Forbidden
from portal.permissions import ADMIN, IsAdminRole, IsStudent, has_role
from portal.serializers.hostels import (
    AllocateRoomSerializer,
    ApplicationListQuerySerializer,
    ApplicationRejectSerializer,
    EvictSerializer,
    HostelApplySerializer,
    HostelCreateSerializer,
    HostelListQuerySerializer,
    HostelUpdateSerializer,
)
from portal.services import hostels as svc


def _hostel_fields(vd: dict) -> dict:
    mapping = {'name': 'name', 'gender': 'gender', 'rooms': 'rooms', 'facilities': 'facilities',
               'totalRooms': 'total_rooms', 'capacity': 'capacity', 'isActive': 'is_active'}
    return {mapping[k]: v for k, v in vd.items() if k in mapping}

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def hostel_list(request):
    if request.method == 'POST':
        if not has_role(request.user, ADMIN):
            raise Forbidden('Only administrators can create hostels')
        s = HostelCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        fields = _hostel_fields(s.validated_data)
        fields.setdefault('rooms', [])
        fields.setdefault('facilities', [])
        hostel = svc.create_hostel(**fields)
        return Response({'ok': True, 'message': 'Hostel created successfully', 'data': svc.serialize_hostel(hostel)},
                        status=201)
    q = HostelListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_hostels(
        gender=q.validated_data.get('gender'),
        available=q.validated_data.get('available'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hostel_stats(request):
    return Response({'ok': True, 'data': svc.hostel_stats()})

@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def hostel_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_hostel(svc.get_hostel(pk))})
    if not has_role(request.user, ADMIN):
        raise Forbidden('Only administrators can manage hostels')
    if request.method == 'DELETE':
        svc.delete_hostel(pk)
        return Response({'ok': True, 'message': 'Hostel deleted successfully'})
    s = HostelUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    hostel = svc.update_hostel(pk, _hostel_fields(s.validated_data))
    return Response({'ok': True, 'message': 'Hostel updated successfully', 'data': svc.serialize_hostel(hostel)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hostel_room(request, pk, room_number):
    return Response({'ok': True, 'data': svc.room_details(pk, room_number)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hostel_room_evict(request, pk, room_number):
    s = EvictSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = svc.evict_student(request.user, pk, room_number, s.validated_data['studentId'])
    return Response({'ok': True, 'message': 'Student removed from room', 'data': data})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def hostel_apply(request):
    s = HostelApplySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = svc.apply(
        request.user,
        session_id=s.validated_data['sessionId'],
        roommate_preference=s.validated_data['roommatePreference'],
        special_requests=s.validated_data['specialRequests'],
    )
    return Response({'ok': True, 'message': 'Application submitted successfully',
                     'data': svc.serialize_application(svc.get_application(request.user, app.id))}, status=201)

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def application_list(request):
    q = ApplicationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_applications(
        request.user,
        status=q.validated_data.get('status'),
        session_id=q.validated_data.get('session'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def my_application(request):
    return Response({'ok': True, 'data': svc.serialize_application(svc.my_application(request.user))})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def application_detail(request, pk):
    return Response({'ok': True, 'data': svc.serialize_application(svc.get_application(request.user, pk))})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def application_approve(request, pk):
    app = svc.approve_application(request.user, pk)
    return Response({'ok': True, 'message': 'Application approved', 'data': svc.serialize_application(app)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def application_reject(request, pk):
    s = ApplicationRejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = svc.reject_application(request.user, pk, s.validated_data['reason'])
    return Response({'ok': True, 'message': 'Application rejected', 'data': svc.serialize_application(app)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def application_allocate(request, pk):
    s = AllocateRoomSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = svc.allocate_room(
        request.user, pk, hostel_id=s.validated_data['hostelId'], room_number=s.validated_data['roomNumber'],
    )
    return Response({'ok': True, 'message': 'Room allocated successfully', 'data': svc.serialize_application(app)})
