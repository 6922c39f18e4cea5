"""
Clearance workflow views.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsStaff, IsStudent
from portal.serializers.clearance import (
    ClearanceApproveSerializer,
    ClearanceListQuerySerializer,
    ClearanceRejectSerializer,
    DepartmentStatusSerializer,
    DocumentRequestSerializer,
    DocumentStatusSerializer,
)
from portal.services import clearance as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def my_clearance(request):
    return Response({'ok': True, 'data': svc.serialize_clearance(svc.ensure_clearance(request.user))})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def clearance_request_document(request):
    s = DocumentRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    entry = svc.request_document(
        request.user,
        document_type=vd['documentType'],
        purpose=vd['purpose'],
        delivery_method=vd['deliveryMethod'],
        urgency=vd['urgency'],
    )
    return Response({'ok': True, 'message': 'Document request submitted', 'data': entry}, status=201)

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def clearance_list(request):
    q = ClearanceListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_clearances(
        status=q.validated_data.get('status'),
        department=q.validated_data.get('department'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def clearance_detail(request, pk):
    return Response({'ok': True, 'data': svc.serialize_clearance(svc.get_clearance(request.user, pk))})

@api_view(['PUT', 'PATCH', 'POST'])
@permission_classes([IsAuthenticated, IsStaff])
def clearance_department_status(request, pk):
    s = DepartmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    clearance = svc.update_department_status(
        request.user, pk,
        department_name=s.validated_data['departmentName'],
        status=s.validated_data['status'],
        comment=s.validated_data.get('comment'),
    )
    return Response({'ok': True, 'message': 'Department status updated', 'data': svc.serialize_clearance(clearance)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsStaff])
def clearance_approve(request, pk):
    s = ClearanceApproveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    clearance = svc.approve_clearance(request.user, pk, s.validated_data.get('comment'))
    return Response({'ok': True, 'message': 'Clearance approved', 'data': svc.serialize_clearance(clearance)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsStaff])
def clearance_reject(request, pk):
    s = ClearanceRejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    clearance = svc.reject_clearance(
        request.user, pk, reason=s.validated_data['reason'], department_name=s.validated_data.get('departmentName'),
    )
    return Response({'ok': True, 'message': 'Clearance rejected', 'data': svc.serialize_clearance(clearance)})

@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsStaff])
def clearance_document_status(request, pk, request_id):
    s = DocumentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    entry = svc.update_document_request(request.user, pk, request_id, s.validated_data['status'])
    return Response({'ok': True, 'message': 'Document request updated', 'data': entry})
