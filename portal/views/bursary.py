from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsBursaryOrAdmin
from portal.serializers.bursary import OverviewQuerySerializer, ReportGenerateSerializer
from portal.services import bursary as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def bursary_reports(request):
    q = OverviewQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data = svc.overview(
        session=vd.get('session'),
        status=vd.get('status'),
        type=vd.get('type'),
        start_date=vd.get('startDate'),
        end_date=vd.get('endDate'),
        academic_year=vd.get('academicYear'),
        scholarship_status=vd.get('scholarshipStatus'),
    )
    return Response({'ok': True, 'message': 'Bursary reports retrieved successfully', 'data': data})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def bursary_generate_report(request):
    s = ReportGenerateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    data = svc.generate_report(
        format=vd['format'],
        filters=vd['filters'],
        limit=vd['limit'],
        include_scholarships=vd['includeScholarships'],
    )
    return Response({'ok': True, 'message': 'Report generated successfully', 'data': data}, status=201)
