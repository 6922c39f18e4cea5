"""
Final-year clearance workflow.

Each student has one clearance record per academic year holding the
list of departments that must sign off.  The overall status is derived
from the department entries by :func:`recompute_overall_status`:

* every department approved -> ``completed`` (``completed_at`` set)
* otherwise any department rejected -> ``rejected``
* otherwise -> ``in-progress``
"""
from __future__ import annotations

import uuid
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import Clearance, User
from portal.permissions import STUDENT
from portal.services.audit import log_action
from portal.services.common import iso, paginate, user_brief
from portal.services.notifications import create_notification

DEFAULT_DEPARTMENTS = (
    ('Library', 'Ensure all borrowed books are returned and fines cleared', True),
    ('Bursary', 'Confirm all outstanding fees have been paid', True),
    ('Department', 'Departmental clearance from HOD', True),
    ('Hostel', 'Hostel clearance (if applicable)', False),
    ('Security', 'Security clearance and ID card return', True),
)
DEPARTMENT_STATUSES = ('pending', 'approved', 'rejected')
DOCUMENT_STATUSES = ('pending', 'processing', 'ready', 'delivered')


def default_departments() -> list[dict]:
    return [
        {
            'name': name,
            'description': description,
            'required': required,
            'status': 'pending',
            'comment': None,
            'approvedBy': None,
            'approvedAt': None,
        }
        for name, description, required in DEFAULT_DEPARTMENTS
    ]


def recompute_overall_status(clearance: Clearance) -> None:
    statuses = [d.get('status') for d in clearance.departments]
    if statuses and all(s == 'approved' for s in statuses):
        clearance.overall_status = Clearance.STATUS_COMPLETED
        clearance.completed_at = clearance.completed_at or timezone.now()
    elif any(s == 'rejected' for s in statuses):
        clearance.overall_status = Clearance.STATUS_REJECTED
        clearance.completed_at = None
    else:
        clearance.overall_status = Clearance.STATUS_IN_PROGRESS
        clearance.completed_at = None


def ensure_clearance(student) -> Clearance:
    clearance, _ = Clearance.objects.get_or_create(
        student=student,
        academic_year=settings.CURRENT_ACADEMIC_YEAR,
        defaults={
            'semester': settings.CURRENT_SEMESTER,
            'departments': default_departments(),
            'overall_status': Clearance.STATUS_IN_PROGRESS,
            'document_requests': [],
            'completed_at': None,
        },
    )
    return clearance


def serialize_clearance(c: Clearance) -> dict:
    departments = c.departments or []
    return {
        'id': c.id,
        'student': user_brief(c.student),
        'academicYear': c.academic_year,
        'semester': c.semester,
        'departments': departments,
        'overallStatus': c.overall_status,
        'progress': {
            'approved': sum(1 for d in departments if d.get('status') == 'approved'),
            'total': len(departments),
        },
        'documentRequests': c.document_requests or [],
        'completedAt': iso(c.completed_at),
        'createdAt': iso(c.created_at),
        'updatedAt': iso(c.updated_at),
    }


def request_document(student, *, document_type: str, purpose: str, delivery_method: str,
                     urgency: str = 'normal') -> dict:
    with transaction.atomic():
        clearance = Clearance.objects.select_for_update().get(pk=ensure_clearance(student).pk)
        entry = {
            'id': uuid.uuid4().hex,
            'documentType': document_type,
            'purpose': purpose,
            'deliveryMethod': delivery_method,
            'urgency': urgency or 'normal',
            'status': 'pending',
            'requestedAt': timezone.now().isoformat(),
        }
        clearance.document_requests = [*(clearance.document_requests or []), entry]
        clearance.save(update_fields=['document_requests', 'updated_at'])
    return entry


def list_clearances(*, status=None, department=None, page=1, page_size=None):
    qs = Clearance.objects.select_related('student')
    if status:
        qs = qs.filter(overall_status=status)
    items = qs.order_by('-academic_year', '-updated_at', '-id')
    if department:
        # department entries are JSON, matched in Python
        wanted = department.strip().lower()
        ids = [c.id for c in items if any(str(d.get('name', '')).lower() == wanted for d in c.departments or [])]
        items = items.filter(id__in=ids)
    rows, pagination = paginate(items, page, page_size)
    return [serialize_clearance(c) for c in rows], pagination


def get_clearance(user, pk: int) -> Clearance:
    clearance = Clearance.objects.select_related('student').filter(pk=pk).first()
    if not clearance:
        raise NotFound('Clearance record not found')
    if user.role == STUDENT and clearance.student_id != user.id:
        raise Forbidden('You can only view your own clearance')
    return clearance


def _department_entry(clearance: Clearance, name: str) -> Optional[dict]:
    wanted = (name or '').strip().lower()
    for entry in clearance.departments:
        if str(entry.get('name', '')).lower() == wanted:
            return entry
    return None


def _actor_name(actor: User) -> str:
    return actor.get_full_name() or actor.username


def update_department_status(actor, pk: int, *, department_name: str, status: str,
                             comment: Optional[str] = None) -> Clearance:
    if status not in DEPARTMENT_STATUSES:
        raise BadRequest(f'Unsupported department status: {status}')
    with transaction.atomic():
        clearance = Clearance.objects.select_for_update().filter(pk=pk).first()
        if not clearance:
            raise NotFound('Clearance record not found')
        entry = _department_entry(clearance, department_name)
        if entry is None:
            raise BadRequest('Department not found in clearance workflow')
        entry['status'] = status
        entry['comment'] = comment or None
        entry['approvedBy'] = _actor_name(actor)
        entry['approvedAt'] = timezone.now().isoformat()
        recompute_overall_status(clearance)
        clearance.save()
    log_action(user=actor, action='clearance_department_update', object_type='clearance', object_id=clearance.id,
               detail={'department': entry['name'], 'status': status})
    create_notification(
        clearance.student_id, 'info', 'Clearance Update',
        f"{entry['name']} clearance status updated to {status}.",
        f'/clearance/{clearance.id}',
    )
    return get_clearance(actor, pk)


def approve_clearance(actor, pk: int, comment: Optional[str] = None) -> Clearance:
    with transaction.atomic():
        clearance = Clearance.objects.select_for_update().filter(pk=pk).first()
        if not clearance:
            raise NotFound('Clearance record not found')
        now = timezone.now().isoformat()
        for entry in clearance.departments:
            entry['status'] = 'approved'
            entry['approvedBy'] = _actor_name(actor)
            entry['approvedAt'] = now
            if comment:
                entry['comment'] = comment
        recompute_overall_status(clearance)
        clearance.save()
    log_action(user=actor, action='clearance_approve', object_type='clearance', object_id=clearance.id)
    create_notification(
        clearance.student_id, 'success', 'Clearance Approved',
        'Your clearance has been fully approved.', f'/clearance/{clearance.id}',
    )
    return get_clearance(actor, pk)


def reject_clearance(actor, pk: int, *, reason: str, department_name: Optional[str] = None) -> Clearance:
    if not reason:
        raise BadRequest('Rejection reason is required')
    with transaction.atomic():
        clearance = Clearance.objects.select_for_update().filter(pk=pk).first()
        if not clearance:
            raise NotFound('Clearance record not found')
        if department_name:
            entry = _department_entry(clearance, department_name)
            if entry is None:
                raise BadRequest('Department not found in clearance workflow')
            entry['status'] = 'rejected'
            entry['comment'] = reason
            entry['approvedBy'] = _actor_name(actor)
            entry['approvedAt'] = timezone.now().isoformat()
        clearance.overall_status = Clearance.STATUS_REJECTED
        clearance.completed_at = None
        clearance.save()
    log_action(user=actor, action='clearance_reject', object_type='clearance', object_id=clearance.id,
               detail={'reason': reason, 'department': department_name})
    create_notification(
        clearance.student_id, 'warning', 'Clearance Rejected',
        f'Your clearance was rejected: {reason}', f'/clearance/{clearance.id}',
    )
    return get_clearance(actor, pk)


def update_document_request(actor, pk: int, request_id: str, status: str) -> dict:
    if status not in DOCUMENT_STATUSES:
        raise BadRequest(f'Unsupported document request status: {status}')
    with transaction.atomic():
        clearance = Clearance.objects.select_for_update().filter(pk=pk).first()
        if not clearance:
            raise NotFound('Clearance record not found')
        entry = next((r for r in clearance.document_requests or [] if r.get('id') == request_id), None)
        if entry is None:
            raise NotFound('Document request not found')
        entry['status'] = status
        entry['updatedAt'] = timezone.now().isoformat()
        clearance.save(update_fields=['document_requests', 'updated_at'])
    if status == 'ready':
        create_notification(
            clearance.student_id, 'info', 'Document Ready',
            f"Your {entry['documentType']} is ready for {entry['deliveryMethod']}.", f'/clearance/{clearance.id}',
        )
    return entry
