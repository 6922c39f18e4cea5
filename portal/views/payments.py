"""
Payment views: gateway initialisation and verification, bursary
review, receipts, statistics and the gateway webhook.
"""
import json
import logging

from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import BadRequest, Forbidden
from portal.permissions import IsBursaryOrAdmin, IsStudent
from portal.serializers.payments import (
    FeeQuerySerializer,
    PaymentInitSerializer,
    PaymentListQuerySerializer,
    PaymentRejectSerializer,
    PaymentStatsQuerySerializer,
    PaymentVerifySerializer,
)
from portal.services import payments as svc
from portal.services import paystack
from portal.services.common import money

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def payment_initialize(request):
    s = PaymentInitSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    payment, init = svc.initialize_payment(
        request.user,
        payment_type=vd['type'],
        amount=vd['amount'],
        session_id=vd['sessionId'],
        semester=vd['semester'],
    )
    return Response({
        'ok': True,
        'message': 'Payment initialized successfully',
        'data': {
            'payment': svc.serialize_payment(payment),
            'authorizationUrl': init.authorization_url,
            'accessCode': init.access_code,
            'reference': init.reference,
        },
    }, status=201)

payment_initialize.throttle_scope = 'payment_write'

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_verify(request):
    s = PaymentVerifySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payment = svc.verify_payment(request.user, s.validated_data['reference'])
    return Response({'ok': True, 'message': 'Payment verified successfully', 'data': svc.serialize_payment(payment)})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_list(request):
    q = PaymentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data, pagination = svc.list_payments(
        request.user,
        student_id=vd.get('student'),
        payment_type=vd.get('type'),
        status=vd.get('status'),
        session_id=vd.get('session'),
        semester=vd.get('semester'),
        page=vd.get('page', 1),
        page_size=vd.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_detail(request, pk):
    return Response({'ok': True, 'data': svc.serialize_payment(svc.get_payment(request.user, pk))})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def payment_manual_verify(request, pk):
    payment = svc.manually_verify(request.user, pk)
    return Response({'ok': True, 'message': 'Payment verified successfully', 'data': svc.serialize_payment(payment)})

@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def payment_reject(request, pk):
    s = PaymentRejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payment = svc.reject_payment(request.user, pk, s.validated_data['reason'])
    return Response({'ok': True, 'message': 'Payment rejected', 'data': svc.serialize_payment(payment)})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_receipt(request, pk):
    return Response({'ok': True, 'data': svc.build_receipt(request.user, pk)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBursaryOrAdmin])
def payment_stats(request):
    q = PaymentStatsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data = svc.payment_stats(session_id=q.validated_data.get('session'), semester=q.validated_data.get('semester'))
    return Response({'ok': True, 'data': data})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def student_payments(request, student_id):
    return Response({'ok': True, 'data': svc.student_payments(request.user, student_id)})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_fee(request):
    q = FeeQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    level = q.validated_data.get('level') or request.user.level
    fee = svc.calculate_fee(q.validated_data['type'], level)
    return Response({'ok': True, 'data': {'type': q.validated_data['type'], 'level': level, 'amount': money(fee)}})

@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def payment_webhook(request):
    body = request.body
    if not paystack.valid_signature(body, request.headers.get('X-Paystack-Signature')):
        logger.warning('Rejected payment webhook with invalid signature')
        raise Forbidden('Invalid signature')
    try:
        event = json.loads(body or b'{}')
    except ValueError:
        raise BadRequest('Invalid webhook payload')
    if not isinstance(event, dict):
        raise BadRequest('Invalid webhook payload')
    logger.info('Payment webhook received: %s', event.get('event'))
    svc.apply_webhook_event(event)
    return Response({'ok': True})
