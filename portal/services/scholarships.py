"""Scholarship schemes and student applications."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from portal.exceptions import BadRequest, NotFound
from portal.models import Scholarship, ScholarshipApplication, User
from portal.services.audit import log_action
from portal.services.common import iso, money, paginate, user_brief
from portal.services.grading import student_cgpa
from portal.services.notifications import create_notification


def serialize_scholarship(s: Scholarship) -> dict:
    return {
        'id': s.id,
        'name': s.name,
        'description': s.description,
        'amount': money(s.amount),
        'eligibilityCriteria': s.eligibility_criteria,
        'availableSlots': s.available_slots,
        'filledSlots': s.filled_slots,
        'remainingSlots': max(0, s.available_slots - s.filled_slots),
        'applicationDeadline': iso(s.application_deadline),
        'academicYear': s.academic_year,
        'status': s.status,
        'isActive': s.is_active,
        'createdAt': iso(s.created_at),
    }


def serialize_application(a: ScholarshipApplication) -> dict:
    return {
        'id': a.id,
        'scholarship': {'id': a.scholarship.id, 'name': a.scholarship.name, 'amount': money(a.scholarship.amount)},
        'student': user_brief(a.student),
        'reason': a.reason,
        'documents': a.documents,
        'financialInfo': a.financial_info,
        'status': a.status,
        'approvedAmount': money(a.approved_amount) if a.approved_amount is not None else None,
        'notes': a.notes,
        'rejectionReason': a.rejection_reason or None,
        'reviewedBy': user_brief(a.reviewed_by),
        'reviewedAt': iso(a.reviewed_at),
        'createdAt': iso(a.created_at),
    }


def create_scholarship(actor, data: dict) -> Scholarship:
    return Scholarship.objects.create(created_by=actor, **data)


def is_eligible(scholarship: Scholarship, student: User, cgpa: float) -> bool:
    criteria = scholarship.eligibility_criteria or {}
    min_cgpa = criteria.get('minCGPA')
    if min_cgpa is not None and cgpa < float(min_cgpa):
        return False
    levels = criteria.get('levels') or []
    if levels and student.level not in levels:
        return False
    departments = criteria.get('departments') or []
    if departments:
        dept = student.department
        if not dept or (dept.code not in departments and dept.name not in departments):
            return False
    return True


def available_scholarships(student) -> dict:
    cgpa = student_cgpa(student)
    applied = set(ScholarshipApplication.objects.filter(student=student).values_list('scholarship_id', flat=True))
    qs = Scholarship.objects.filter(is_active=True, application_deadline__gte=timezone.now()).order_by('application_deadline')
    items = []
    for s in qs:
        if not is_eligible(s, student, cgpa):
            continue
        items.append({**serialize_scholarship(s), 'hasApplied': s.id in applied})
    return {'scholarships': items, 'studentCGPA': cgpa}


def apply(student, scholarship_id: int, *, reason: str, documents: Optional[list] = None,
          financial_info: Optional[dict] = None) -> ScholarshipApplication:
    if not reason:
        raise BadRequest('Reason is required')
    scholarship = Scholarship.objects.filter(pk=scholarship_id).first()
    if not scholarship:
        raise NotFound('Scholarship not found')
    if not scholarship.is_active:
        raise BadRequest('Scholarship is not active')
    if scholarship.application_deadline < timezone.now():
        raise BadRequest('Application deadline has passed')
    if scholarship.filled_slots >= scholarship.available_slots:
        raise BadRequest('Scholarship slots are full')
    if ScholarshipApplication.objects.filter(scholarship=scholarship, student=student).exists():
        raise BadRequest('You have already applied for this scholarship')
    try:
        with transaction.atomic():
            app = ScholarshipApplication.objects.create(
                scholarship=scholarship, student=student, reason=reason,
                documents=documents or [], financial_info=financial_info or {},
            )
    except IntegrityError:
        raise BadRequest('You have already applied for this scholarship')
    return _qs().get(pk=app.pk)


def _qs():
    return ScholarshipApplication.objects.select_related('scholarship', 'student', 'reviewed_by')


def my_applications(student) -> list[dict]:
    return [serialize_application(a) for a in _qs().filter(student=student).order_by('-created_at')]


def list_applications(*, status=None, scholarship_id=None, page=1, page_size=None):
    qs = _qs()
    if status:
        qs = qs.filter(status=status)
    if scholarship_id:
        qs = qs.filter(scholarship_id=scholarship_id)
    items, pagination = paginate(qs.order_by('-created_at'), page, page_size)
    return [serialize_application(a) for a in items], pagination


def application_details(pk: int) -> dict:
    app = _qs().filter(pk=pk).first()
    if not app:
        raise NotFound('Application not found')
    return {**serialize_application(app), 'studentCGPA': student_cgpa(app.student)}


def approve(actor, pk: int, *, amount: Optional[Decimal] = None, notes: str = '') -> ScholarshipApplication:
    with transaction.atomic():
        app = ScholarshipApplication.objects.select_for_update().filter(pk=pk).first()
        if not app:
            raise NotFound('Application not found')
        if app.status != 'pending':
            raise BadRequest('Application has already been reviewed')
        scholarship = Scholarship.objects.select_for_update().get(pk=app.scholarship_id)
        if scholarship.filled_slots >= scholarship.available_slots:
            raise BadRequest('Scholarship slots are full')
        app.status = 'approved'
        app.approved_amount = amount if amount is not None else scholarship.amount
        app.notes = notes or ''
        app.reviewed_by = actor
        app.reviewed_at = timezone.now()
        app.save()
        scholarship.filled_slots += 1
        scholarship.save(update_fields=['filled_slots'])
    log_action(user=actor, action='scholarship_approve', object_type='scholarship_application', object_id=app.id,
               detail={'amount': money(app.approved_amount)})
    create_notification(
        app.student_id, 'success', 'Scholarship Approved',
        f'Your application for {scholarship.name} has been approved.', '/scholarships',
    )
    return _qs().get(pk=pk)


def reject(actor, pk: int, reason: str = '') -> ScholarshipApplication:
    with transaction.atomic():
        app = ScholarshipApplication.objects.select_for_update().filter(pk=pk).first()
        if not app:
            raise NotFound('Application not found')
        if app.status != 'pending':
            raise BadRequest('Application has already been reviewed')
        app.status = 'rejected'
        app.rejection_reason = reason or ''
        app.reviewed_by = actor
        app.reviewed_at = timezone.now()
        app.save()
    log_action(user=actor, action='scholarship_reject', object_type='scholarship_application', object_id=app.id,
               detail={'reason': reason})
    scholarship = app.scholarship
    message = f'Your application for {scholarship.name} was not successful.'
    if reason:
        message = f'{message} Reason: {reason}'
    create_notification(app.student_id, 'warning', 'Scholarship Application Update', message, '/scholarships')
    return _qs().get(pk=pk)
