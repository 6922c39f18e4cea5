"""
Grade appeals against published results.

A student may appeal each of their own published results once.  The
appeal moves from ``pending`` to ``in-review`` and is closed as
``resolved`` or ``rejected`` by the head of the course's department or
an administrator.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import GradeAppeal, Result
from portal.permissions import ADMIN, HOD, LECTURER, STUDENT
from portal.services.audit import log_action
from portal.services.common import iso, paginate, user_brief
from portal.services.notifications import create_notification

logger = logging.getLogger(__name__)

CLOSED = {GradeAppeal.STATUS_RESOLVED, GradeAppeal.STATUS_REJECTED}
TRANSITIONS = {
    GradeAppeal.STATUS_PENDING: {GradeAppeal.STATUS_IN_REVIEW, *CLOSED},
    GradeAppeal.STATUS_IN_REVIEW: CLOSED,
}
NOTICE = {
    GradeAppeal.STATUS_IN_REVIEW: ('info', 'is now under review'),
    GradeAppeal.STATUS_RESOLVED: ('success', 'has been resolved'),
    GradeAppeal.STATUS_REJECTED: ('warning', 'has been rejected'),
}


def serialize_appeal(a: GradeAppeal) -> dict:
    r = a.result
    return {
        'id': a.id,
        'student': user_brief(a.student),
        'course': {'id': a.course.id, 'code': a.course.code, 'title': a.course.title},
        'result': {'id': r.id, 'totalScore': r.total_score, 'grade': r.grade, 'semester': r.semester},
        'reason': a.reason,
        'preferredResolution': a.preferred_resolution or None,
        'attachments': a.attachments,
        'status': a.status,
        'resolutionNote': a.resolution_note or None,
        'resolvedBy': user_brief(a.resolved_by),
        'resolvedAt': iso(a.resolved_at),
        'createdAt': iso(a.created_at),
    }


def _qs():
    return GradeAppeal.objects.select_related('student', 'course', 'result', 'resolved_by')


def _scoped(qs, user):
    if user.role == ADMIN:
        return qs
    if user.role == HOD and user.department_id:
        return qs.filter(course__department_id=user.department_id)
    if user.role == LECTURER:
        return qs.filter(course__lecturer=user)
    if user.role == STUDENT:
        return qs.filter(student=user)
    return qs.none()


def submit_appeal(student, *, result_id: int, reason: str, preferred_resolution: str = '',
                  attachments=None) -> GradeAppeal:
    if not result_id or not (reason or '').strip():
        raise BadRequest('Result and reason are required')
    result = Result.objects.select_related('course').filter(pk=result_id).first()
    if not result:
        raise NotFound('Result not found')
    if result.student_id != student.id:
        raise Forbidden('You can only appeal your own results')
    if not result.is_published:
        raise BadRequest('You can only appeal published results')
    if GradeAppeal.objects.filter(student=student, result=result).exists():
        raise BadRequest('You have already submitted an appeal for this result')
    try:
        with transaction.atomic():
            appeal = GradeAppeal.objects.create(
                student=student, result=result, course=result.course, reason=reason.strip(),
                preferred_resolution=preferred_resolution, attachments=attachments or [],
            )
    except IntegrityError:
        raise BadRequest('You have already submitted an appeal for this result')
    logger.info('Grade appeal %s submitted by user %s for result %s', appeal.id, student.id, result.id)
    return appeal


def my_appeals(student, *, status: Optional[str] = None) -> dict:
    qs = _qs().filter(student=student)
    if status:
        qs = qs.filter(status=status)
    appeals = [serialize_appeal(a) for a in qs.order_by('-created_at', '-id')]
    return {'appeals': appeals, 'total': len(appeals)}


def list_appeals(user, *, status=None, course_id=None, page=1, page_size=None):
    qs = _scoped(_qs(), user)
    if status:
        qs = qs.filter(status=status)
    if course_id:
        qs = qs.filter(course_id=course_id)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, page_size)
    return [serialize_appeal(a) for a in items], pagination


def get_appeal(user, pk: int) -> GradeAppeal:
    appeal = _qs().filter(pk=pk).first()
    if not appeal:
        raise NotFound('Appeal not found')
    if not _scoped(GradeAppeal.objects.filter(pk=pk), user).exists():
        raise Forbidden('You do not have access to this appeal')
    return appeal


def review_appeal(actor, pk: int, *, status: str, note: str = '') -> GradeAppeal:
    with transaction.atomic():
        appeal = GradeAppeal.objects.select_for_update().filter(pk=pk).first()
        if not appeal:
            raise NotFound('Appeal not found')
        if actor.role != ADMIN and not (actor.department_id and GradeAppeal.objects.filter(
                pk=pk, course__department_id=actor.department_id).exists()):
            raise Forbidden('You can only review appeals for your department')
        if appeal.status in CLOSED:
            raise BadRequest('Appeal has already been closed')
        if status not in TRANSITIONS[appeal.status]:
            raise BadRequest(f'Cannot move appeal from {appeal.status} to {status}')
        if status in CLOSED and not (note or '').strip():
            raise BadRequest('A resolution note is required')
        appeal.status = status
        if note:
            appeal.resolution_note = note.strip()
        if status in CLOSED:
            appeal.resolved_by = actor
            appeal.resolved_at = timezone.now()
        appeal.save()
    log_action(user=actor, action='grade_appeal_review', object_type='grade_appeal', object_id=appeal.id,
               detail={'status': status})

    appeal = _qs().get(pk=appeal.pk)
    kind, phrase = NOTICE[status]
    create_notification(
        appeal.student_id, kind, 'Grade Appeal Update',
        f'Your appeal for {appeal.course.code} {phrase}.', f'/results/appeals/{appeal.id}',
    )
    return appeal
