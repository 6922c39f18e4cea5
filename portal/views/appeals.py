"""
Grade appeal views.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import Forbidden
from portal.permissions import ACADEMIC_ROLES, STUDENT, IsHodOrAdmin, IsStudent, has_role
from portal.serializers.appeals import (
    AppealCreateSerializer,
    AppealListQuerySerializer,
    AppealReviewSerializer,
    AppealStatusQuerySerializer,
)
from portal.services import appeals as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appeal_list(request):
    if request.method == 'POST':
        if not has_role(request.user, STUDENT):
            raise Forbidden('Only students can appeal results')
        s = AppealCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        appeal = svc.submit_appeal(
            request.user,
            result_id=vd['resultId'],
            reason=vd['reason'],
            preferred_resolution=vd['preferredResolution'],
            attachments=[dict(f) for f in vd['attachments']],
        )
        return Response({'ok': True, 'message': 'Appeal submitted successfully',
                         'data': svc.serialize_appeal(appeal)}, status=201)
    if not has_role(request.user, *ACADEMIC_ROLES):
        raise Forbidden('You do not have permission to view appeals')
    q = AppealListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_appeals(
        request.user,
        status=q.validated_data.get('status'),
        course_id=q.validated_data.get('course'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def my_appeals(request):
    q = AppealStatusQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': svc.my_appeals(request.user, status=q.validated_data.get('status'))})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appeal_detail(request, pk):
    return Response({'ok': True, 'data': svc.serialize_appeal(svc.get_appeal(request.user, pk))})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHodOrAdmin])
def appeal_review(request, pk):
    s = AppealReviewSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appeal = svc.review_appeal(request.user, pk, status=s.validated_data['status'],
                               note=s.validated_data['resolutionNote'])
    return Response({'ok': True, 'message': 'Appeal updated successfully', 'data': svc.serialize_appeal(appeal)})
