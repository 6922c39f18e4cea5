"""
Scholarship views.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import Forbidden
from portal.models import Scholarship
from portal.permissions import FINANCE_ROLES, IsBursaryOrAdmin, IsStaff, IsStudent, has_role
from portal.serializers.scholarships import (
    ScholarshipApplicationsQuerySerializer,
    ScholarshipApplySerializer,
    ScholarshipApproveSerializer,
    ScholarshipCreateSerializer,
    ScholarshipRejectSerializer,
)
from portal.services import scholarships as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def scholarship_list(request):
    if request.method == 'POST':
        if not has_role(request.user, *FINANCE_ROLES):
            raise Forbidden('Only bursary or admin staff can create scholarships')
        s = ScholarshipCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        scholarship = svc.create_scholarship(request.user, s.to_model_fields())
        return Response({'ok': True, 'message': 'Scholarship created successfully',
                         'data': svc.serialize_scholarship(scholarship)}, status=201)
    data = [svc.serialize_scholarship(s) for s in Scholarship.objects.order_by('-created_at')]
    return Response({'ok': True, 'data': data})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def scholarship_available(request):
    return Response({'ok': True, 'data': svc.available_scholarships(request.user)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def scholarship_apply(request, pk):
    s = ScholarshipApplySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = svc.apply(
        request.user, pk,
        reason=s.validated_data['reason'],
        documents=s.validated_data['documents'],
        financial_info=s.validated_data['financialInfo'],
    )
    return Response({'ok': True, 'message': 'Application submitted successfully',
                     'data': svc.serialize_application(app)}, status=201)

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def scholarship_my_applications(request):
    return Response({'ok': True, 'data': svc.my_applications(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def scholarship_applications(request):
    q = ScholarshipApplicationsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_applications(
        status=q.validated_data.get('status'),
        scholarship_id=q.validated_data.get('scholarshipId'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def scholarship_application_detail(request, pk):
    return Response({'ok': True, 'data': svc.application_details(pk)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def scholarship_application_approve(request, pk):
    s = ScholarshipApproveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = svc.approve(request.user, pk, amount=s.validated_data.get('amount'), notes=s.validated_data['notes'])
    return Response({'ok': True, 'message': 'Application approved', 'data': svc.serialize_application(app)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def scholarship_application_reject(request, pk):
    s = ScholarshipRejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = svc.reject(request.user, pk, s.validated_data['reason'])
    return Response({'ok': True, 'message': 'Application rejected', 'data': svc.serialize_application(app)})
