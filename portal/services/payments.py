"""
Fee payments: initialisation through the gateway, verification,
manual review by the bursary, receipts and statistics.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import AcademicSession, Payment
from portal.permissions import FINANCE_ROLES, STUDENT
from portal.services import paystack
from portal.services.audit import log_action
from portal.services.common import generate_reference, iso, money, paginate, session_brief, user_brief
from portal.services.notifications import create_notification

User = get_user_model()
logger = logging.getLogger(__name__)

BASE_FEES = {
    'tuition': Decimal('150000'),
    'hostel': Decimal('50000'),
    'library': Decimal('5000'),
    'medical': Decimal('10000'),
    'sports': Decimal('5000'),
    'exam': Decimal('2000'),
    'late_registration': Decimal('5000'),
}
PAYMENT_TYPES = tuple(BASE_FEES)
PAYMENT_STATUSES = tuple(s for s, _ in Payment.STATUS_CHOICES)
SENIOR_LEVEL = 300
SENIOR_TUITION_FACTOR = Decimal('1.2')


def calculate_fee(payment_type: str, level: Optional[int] = None) -> Decimal:
    if payment_type not in BASE_FEES:
        raise BadRequest(f'Unsupported payment type: {payment_type}')
    fee = BASE_FEES[payment_type]
    if payment_type == 'tuition' and level and level >= SENIOR_LEVEL:
        fee = fee * SENIOR_TUITION_FACTOR
    return fee.quantize(Decimal('0.01'))


def serialize_payment(p: Payment) -> dict:
    return {
        'id': p.id,
        'student': user_brief(p.student),
        'type': p.type,
        'amount': money(p.amount),
        'reference': p.reference,
        'status': p.status,
        'session': session_brief(p.session),
        'semester': p.semester,
        'paymentMethod': p.payment_method or None,
        'paymentDate': iso(p.payment_date),
        'verifiedBy': user_brief(p.verified_by),
        'verifiedAt': iso(p.verified_at),
        'rejectionReason': p.rejection_reason or None,
        'createdAt': iso(p.created_at),
    }


def _is_finance(user) -> bool:
    return getattr(user, 'role', None) in FINANCE_ROLES


def _check_owner(user, payment: Payment) -> None:
    if _is_finance(user):
        return
    if payment.student_id != user.id:
        raise Forbidden('You are not authorized to access this payment')


def initialize_payment(user, *, payment_type: str, amount: Decimal, session_id: int,
                       semester: str) -> tuple[Payment, paystack.GatewayInit]:
    session = AcademicSession.objects.filter(id=session_id).first()
    if not session:
        raise NotFound('Session not found')

    already = Payment.objects.filter(
        student=user, type=payment_type, session=session, semester=semester,
        status__in=[Payment.STATUS_VERIFIED, Payment.STATUS_PROCESSING],
    ).exists()
    if already:
        raise BadRequest('Payment already made or in progress for this type, session and semester')

    reference = generate_reference('PAY')
    init = paystack.initialize_transaction(
        email=user.email,
        amount=amount,
        reference=reference,
        metadata={'studentId': user.id, 'paymentType': payment_type, 'session': session.name, 'semester': semester},
    )
    payment = Payment.objects.create(
        student=user,
        type=payment_type,
        amount=amount,
        reference=init.reference,
        status=Payment.STATUS_PENDING,
        session=session,
        semester=semester,
        gateway_response={'accessCode': init.access_code, 'mock': init.mock},
    )
    logger.info('Payment %s initialized for user %s (%s %s)', payment.reference, user.id, payment_type, amount)
    return payment, init


def _mark_verified(payment: Payment, *, by=None, method: str = '', paid_at=None, raw: Optional[dict] = None) -> None:
    now = timezone.now()
    payment.status = Payment.STATUS_VERIFIED
    payment.payment_date = paid_at or now
    payment.payment_method = method or payment.payment_method or 'manual'
    payment.verified_by = by
    payment.verified_at = now
    if raw:
        payment.gateway_response = {**(payment.gateway_response or {}), 'verification': raw}
    payment.save()


def verify_payment(user, reference: str) -> Payment:
    """Confirm a payment with the gateway.

    Only pending or processing payments are settled; the status is read
    again under the row lock since a webhook may land while the gateway
    call is in flight.
    """
    payment = Payment.objects.select_related('student', 'session').filter(reference=reference).first()
    if not payment:
        raise NotFound('Payment not found')
    if user.role == STUDENT and payment.student_id != user.id:
        raise Forbidden('You can only verify your own payments')
    if payment.status == Payment.STATUS_VERIFIED:
        return payment
    if payment.status == Payment.STATUS_REJECTED:
        raise BadRequest('Payment has been rejected')

    result = paystack.verify_transaction(reference)
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status == Payment.STATUS_VERIFIED:
            return Payment.objects.select_related('student', 'session', 'verified_by').get(pk=payment.pk)
        if payment.status == Payment.STATUS_REJECTED:
            raise BadRequest('Payment has been rejected')
        if result.success:
            _mark_verified(payment, method=result.channel, raw={'gatewayResponse': result.gateway_response,
                                                                 'paidAt': result.paid_at})
        else:
            payment.status = Payment.STATUS_REJECTED
            payment.rejection_reason = result.gateway_response or 'Verification failed'
            payment.save(update_fields=['status', 'rejection_reason', 'updated_at'])

    log_action(user=user, action='payment_verify', object_type='payment', object_id=payment.id,
               detail={'reference': reference, 'success': result.success})
    if not result.success:
        raise BadRequest('Payment verification failed')

    create_notification(
        payment.student_id, 'success', 'Payment Verified',
        f'Your {payment.type} payment of {money(payment.amount):,.2f} has been verified.',
        f'/payments/{payment.id}',
    )
    return Payment.objects.select_related('student', 'session', 'verified_by').get(pk=payment.pk)


def list_payments(user, *, student_id=None, payment_type=None, status=None, session_id=None,
                  semester=None, page=1, page_size=None) -> tuple[list[dict], dict]:
    qs = Payment.objects.select_related('student', 'session', 'verified_by')
    if user.role == STUDENT:
        qs = qs.filter(student=user)
    elif not _is_finance(user):
        raise Forbidden('You are not authorized to view payments')
    elif student_id:
        qs = qs.filter(student_id=student_id)
    if payment_type:
        qs = qs.filter(type=payment_type)
    if status:
        qs = qs.filter(status=status)
    if session_id:
        qs = qs.filter(session_id=session_id)
    if semester:
        qs = qs.filter(semester=semester)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, page_size)
    return [serialize_payment(p) for p in items], pagination


def get_payment(user, pk: int) -> Payment:
    payment = Payment.objects.select_related('student', 'session', 'verified_by').filter(pk=pk).first()
    if not payment:
        raise NotFound('Payment not found')
    _check_owner(user, payment)
    return payment


def manually_verify(actor, pk: int) -> Payment:
    with transaction.atomic():
        payment = Payment.objects.select_for_update().filter(pk=pk).first()
        if not payment:
            raise NotFound('Payment not found')
        if payment.status == Payment.STATUS_VERIFIED:
            raise BadRequest('Payment already verified')
        _mark_verified(payment, by=actor, method='manual')
    log_action(user=actor, action='payment_manual_verify', object_type='payment', object_id=payment.id,
               detail={'reference': payment.reference})
    create_notification(
        payment.student_id, 'success', 'Payment Verified',
        f'Your {payment.type} payment ({payment.reference}) has been verified by the bursary.',
        f'/payments/{payment.id}',
    )
    return get_payment(actor, pk)


def reject_payment(actor, pk: int, reason: str = '') -> Payment:
    with transaction.atomic():
        payment = Payment.objects.select_for_update().filter(pk=pk).first()
        if not payment:
            raise NotFound('Payment not found')
        if payment.status == Payment.STATUS_VERIFIED:
            raise BadRequest('Cannot reject verified payment')
        payment.status = Payment.STATUS_REJECTED
        payment.rejection_reason = reason or 'No reason provided'
        payment.verified_by = actor
        payment.verified_at = timezone.now()
        payment.save()
    log_action(user=actor, action='payment_reject', object_type='payment', object_id=payment.id,
               detail={'reference': payment.reference, 'reason': payment.rejection_reason})
    create_notification(
        payment.student_id, 'error', 'Payment Rejected',
        f'Your {payment.type} payment ({payment.reference}) was rejected: {payment.rejection_reason}',
        f'/payments/{payment.id}',
    )
    return get_payment(actor, pk)


def build_receipt(user, pk: int) -> dict:
    payment = get_payment(user, pk)
    if payment.status != Payment.STATUS_VERIFIED:
        raise BadRequest('Receipt is only available for verified payments')
    student = payment.student
    return {
        'receiptNumber': f'REC-{payment.reference}',
        'studentName': student.get_full_name() or student.username,
        'studentId': student.student_id,
        'email': student.email,
        'paymentType': payment.type,
        'amount': money(payment.amount),
        'reference': payment.reference,
        'paymentDate': iso(payment.payment_date),
        'status': payment.status,
        'session': payment.session.name if payment.session else None,
        'semester': payment.semester,
        'verifiedBy': payment.verified_by.get_full_name() or payment.verified_by.username
        if payment.verified_by else 'System',
        'verifiedAt': iso(payment.verified_at),
    }


def payment_stats(*, session_id=None, semester=None) -> dict:
    qs = Payment.objects.all()
    if session_id:
        qs = qs.filter(session_id=session_id)
    if semester:
        qs = qs.filter(semester=semester)

    rows = qs.values('type').annotate(
        totalAmount=Sum('amount'),
        verifiedAmount=Sum('amount', filter=Q(status=Payment.STATUS_VERIFIED)),
        pendingAmount=Sum('amount', filter=Q(status=Payment.STATUS_PENDING)),
        count=Count('id'),
        verifiedCount=Count('id', filter=Q(status=Payment.STATUS_VERIFIED)),
        pendingCount=Count('id', filter=Q(status=Payment.STATUS_PENDING)),
        rejectedCount=Count('id', filter=Q(status=Payment.STATUS_REJECTED)),
    ).order_by('type')
    by_type = [{
        'type': r['type'],
        'totalAmount': money(r['totalAmount']),
        'verifiedAmount': money(r['verifiedAmount']),
        'pendingAmount': money(r['pendingAmount']),
        'count': r['count'],
        'verifiedCount': r['verifiedCount'],
        'pendingCount': r['pendingCount'],
        'rejectedCount': r['rejectedCount'],
    } for r in rows]

    overall = qs.aggregate(
        totalRevenue=Sum('amount', filter=Q(status=Payment.STATUS_VERIFIED)),
        totalPayments=Count('id'),
        verifiedPayments=Count('id', filter=Q(status=Payment.STATUS_VERIFIED)),
        pendingPayments=Count('id', filter=Q(status=Payment.STATUS_PENDING)),
        rejectedPayments=Count('id', filter=Q(status=Payment.STATUS_REJECTED)),
    )
    overall['totalRevenue'] = money(overall['totalRevenue'])
    return {'byType': by_type, 'overall': overall}


def student_payments(actor, student_id: int) -> dict:
    if actor.role == STUDENT and actor.id != student_id:
        raise Forbidden('You can only view your own payments')
    if actor.role != STUDENT and not _is_finance(actor):
        raise Forbidden('You are not authorized to view payments')
    student = User.objects.filter(id=student_id, role=STUDENT).first()
    if not student:
        raise NotFound('Student not found')
    payments = list(Payment.objects.select_related('student', 'session', 'verified_by')
                    .filter(student=student).order_by('-created_at'))
    verified = [p for p in payments if p.status == Payment.STATUS_VERIFIED]
    pending = [p for p in payments if p.status == Payment.STATUS_PENDING]
    return {
        'student': user_brief(student),
        'payments': [serialize_payment(p) for p in payments],
        'summary': {
            'totalPaid': money(sum((p.amount for p in verified), Decimal('0'))),
            'totalPending': money(sum((p.amount for p in pending), Decimal('0'))),
            'verifiedCount': len(verified),
            'pendingCount': len(pending),
            'rejectedCount': sum(1 for p in payments if p.status == Payment.STATUS_REJECTED),
        },
    }


def apply_webhook_event(event: dict) -> Optional[Payment]:
    """Apply a gateway ``charge.success`` event; other events are ignored."""
    if event.get('event') != 'charge.success':
        logger.info('Ignoring payment webhook event %s', event.get('event'))
        return None
    reference = (event.get('data') or {}).get('reference')
    if not reference:
        raise BadRequest('Webhook payload has no reference')
    with transaction.atomic():
        payment = Payment.objects.select_for_update().filter(reference=reference).first()
        if not payment:
            logger.warning('Webhook for unknown payment reference %s', reference)
            return None
        if payment.status == Payment.STATUS_VERIFIED:
            return payment
        data = event.get('data') or {}
        _mark_verified(payment, method=data.get('channel') or 'gateway', raw={'webhook': data.get('gateway_response')})
    create_notification(
        payment.student_id, 'success', 'Payment Verified',
        f'Your {payment.type} payment ({payment.reference}) has been confirmed.',
        f'/payments/{payment.id}',
    )
    logger.info('Payment %s verified by webhook', reference)
    return payment
