"""
Course results and their approval chain.

A result is entered by the course lecturer, approved by the HOD, then
by an administrator, and only then can it be published.  Students only
ever see published results.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Optional

from django.db import transaction
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import AcademicSession, Course, Enrollment, Result, User
from portal.permissions import ADMIN, STUDENT
from portal.services.audit import log_action
from portal.services.common import iso, paginate, session_brief, user_brief
from portal.services.grading import GRADE_POINTS, calculate_gpa, calculate_grade, grade_points
from portal.services.notifications import create_bulk_notifications

logger = logging.getLogger(__name__)

MAX_CA = 40
MAX_EXAM = 60


def serialize_result(r: Result) -> dict:
    return {
        'id': r.id,
        'student': user_brief(r.student),
        'course': {'id': r.course.id, 'code': r.course.code, 'title': r.course.title, 'credits': r.course.credits},
        'session': session_brief(r.session),
        'semester': r.semester,
        'caScore': r.ca_score,
        'examScore': r.exam_score,
        'totalScore': r.total_score,
        'grade': r.grade,
        'gradePoints': r.grade_points,
        'enteredBy': user_brief(r.entered_by),
        'approvedByHOD': r.approved_by_hod,
        'hodApprovedAt': iso(r.hod_approved_at),
        'hodRejectionReason': r.hod_rejection_reason or None,
        'approvedByAdmin': r.approved_by_admin,
        'adminApprovedAt': iso(r.admin_approved_at),
        'isPublished': r.is_published,
        'publishedAt': iso(r.published_at),
        'createdAt': iso(r.created_at),
    }


def _qs():
    return Result.objects.select_related('student', 'course', 'session', 'entered_by')


def _check_scores(ca: float, exam: float) -> None:
    if not 0 <= ca <= MAX_CA:
        raise BadRequest(f'CA score must be between 0 and {MAX_CA}')
    if not 0 <= exam <= MAX_EXAM:
        raise BadRequest(f'Exam score must be between 0 and {MAX_EXAM}')


def _apply_scores(result: Result, ca: float, exam: float) -> None:
    _check_scores(ca, exam)
    result.ca_score = ca
    result.exam_score = exam
    result.total_score = round(ca + exam, 2)
    result.grade = calculate_grade(result.total_score)
    result.grade_points = grade_points(result.grade)


def create_result(actor, *, student_id: int, course_id: int, session_id: int, semester: str,
                  ca_score: float, exam_score: float) -> Result:
    student = User.objects.filter(pk=student_id, role=STUDENT).first()
    if not student:
        raise NotFound('Student not found')
    course = Course.objects.filter(pk=course_id).first()
    if not course:
        raise NotFound('Course not found')
    session = AcademicSession.objects.filter(pk=session_id).first()
    if not session:
        raise NotFound('Session not found')
    if actor.role != ADMIN and course.lecturer_id != actor.id:
        raise Forbidden('You can only enter results for courses you teach')
    if not Enrollment.objects.filter(student=student, course=course, status='active').exists():
        raise BadRequest('Student is not enrolled in this course')
    if Result.objects.filter(student=student, course=course, session=session, semester=semester).exists():
        raise BadRequest('Result already exists for this student, course and semester')

    result = Result(student=student, course=course, session=session, semester=semester, entered_by=actor)
    _apply_scores(result, ca_score, exam_score)
    result.save()
    log_action(user=actor, action='result_create', object_type='result', object_id=result.id,
               detail={'grade': result.grade})
    return _qs().get(pk=result.pk)


def list_results(user, *, student_id=None, course_id=None, session_id=None, semester=None,
                 published=None, page=1, page_size=None):
    qs = _qs()
    if user.role == STUDENT:
        qs = qs.filter(student=user, is_published=True)
    elif student_id:
        qs = qs.filter(student_id=student_id)
    if course_id:
        qs = qs.filter(course_id=course_id)
    if session_id:
        qs = qs.filter(session_id=session_id)
    if semester:
        qs = qs.filter(semester=semester)
    if published is not None and user.role != STUDENT:
        qs = qs.filter(is_published=published)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, page_size)
    return [serialize_result(r) for r in items], pagination


def get_result(user, pk: int) -> Result:
    result = _qs().filter(pk=pk).first()
    if not result:
        raise NotFound('Result not found')
    if user.role == STUDENT and (result.student_id != user.id or not result.is_published):
        raise Forbidden('You can only view your own published results')
    return result


def update_result(actor, pk: int, *, ca_score: Optional[float] = None, exam_score: Optional[float] = None) -> Result:
    with transaction.atomic():
        result = Result.objects.select_for_update().filter(pk=pk).first()
        if not result:
            raise NotFound('Result not found')
        if actor.role != ADMIN and result.entered_by_id != actor.id:
            raise Forbidden('You can only update results you entered')
        if result.approved_by_hod or result.approved_by_admin:
            raise BadRequest('Cannot update an approved result')
        _apply_scores(
            result,
            result.ca_score if ca_score is None else ca_score,
            result.exam_score if exam_score is None else exam_score,
        )
        # a corrected result goes back to the HOD
        result.hod_rejection_reason = ''
        result.hod_rejected_by = None
        result.hod_rejected_at = None
        result.save()
    return _qs().get(pk=pk)


def delete_result(actor, pk: int) -> None:
    result = Result.objects.filter(pk=pk).first()
    if not result:
        raise NotFound('Result not found')
    if result.is_published:
        raise BadRequest('Cannot delete a published result')
    result.delete()
    log_action(user=actor, action='result_delete', object_type='result', object_id=pk)


def hod_approve(actor, pk: int) -> Result:
    with transaction.atomic():
        result = Result.objects.select_for_update().filter(pk=pk).first()
        if not result:
            raise NotFound('Result not found')
        if result.approved_by_hod:
            raise BadRequest('Result already approved by HOD')
        result.approved_by_hod = True
        result.hod_approved_by = actor
        result.hod_approved_at = timezone.now()
        result.hod_rejection_reason = ''
        result.save()
    log_action(user=actor, action='result_hod_approve', object_type='result', object_id=pk)
    return _qs().get(pk=pk)


def hod_reject(actor, pk: int, reason: str) -> Result:
    if not reason:
        raise BadRequest('Rejection reason is required')
    with transaction.atomic():
        result = Result.objects.select_for_update().filter(pk=pk).first()
        if not result:
            raise NotFound('Result not found')
        if result.approved_by_hod:
            raise BadRequest('Cannot reject an approved result')
        result.hod_rejection_reason = reason
        result.hod_rejected_by = actor
        result.hod_rejected_at = timezone.now()
        result.save()
    log_action(user=actor, action='result_hod_reject', object_type='result', object_id=pk,
               detail={'reason': reason})
    return _qs().get(pk=pk)


def admin_approve(actor, pk: int) -> Result:
    with transaction.atomic():
        result = Result.objects.select_for_update().filter(pk=pk).first()
        if not result:
            raise NotFound('Result not found')
        if not result.approved_by_hod:
            raise BadRequest('Result must be approved by HOD first')
        if result.approved_by_admin:
            raise BadRequest('Result already approved by admin')
        result.approved_by_admin = True
        result.admin_approved_by = actor
        result.admin_approved_at = timezone.now()
        result.save()
    log_action(user=actor, action='result_admin_approve', object_type='result', object_id=pk)
    return _qs().get(pk=pk)


def publish(actor, *, session_id: int, semester: str) -> int:
    with transaction.atomic():
        qs = Result.objects.select_for_update().filter(
            session_id=session_id, semester=semester,
            approved_by_hod=True, approved_by_admin=True, is_published=False,
        )
        student_ids = list(qs.values_list('student_id', flat=True).distinct())
        modified = qs.update(is_published=True, published_at=timezone.now())
    logger.info('Published %d results for session %s (%s)', modified, session_id, semester)
    log_action(user=actor, action='result_publish', object_type='session', object_id=session_id,
               detail={'semester': semester, 'count': modified})
    if modified:
        create_bulk_notifications(
            student_ids, 'success', 'Results Published',
            'Your results have been published. Check your transcript for details.', '/results',
        )
    return modified


def _student_for(actor, student_id: int) -> User:
    if actor.role == STUDENT and actor.id != student_id:
        raise Forbidden('You can only view your own transcript')
    student = User.objects.filter(pk=student_id, role=STUDENT).first()
    if not student:
        raise NotFound('Student not found')
    return student


def transcript(actor, student_id: int) -> dict:
    student = _student_for(actor, student_id)
    results = (_qs().filter(student=student, is_published=True)
               .order_by('session__name', 'semester', 'course__code'))
    grouped: OrderedDict[tuple, list[Result]] = OrderedDict()
    for r in results:
        grouped.setdefault((r.session.name, r.semester), []).append(r)

    semesters = []
    total_credits = 0
    for (session_name, semester), rows in grouped.items():
        credits = sum(r.course.credits for r in rows)
        total_credits += credits
        semesters.append({
            'session': session_name,
            'semester': semester,
            'results': [serialize_result(r) for r in rows],
            'gpa': calculate_gpa((r.grade_points, r.course.credits) for r in rows),
            'totalCredits': credits,
        })
    return {
        'student': {**user_brief(student), 'level': student.level,
                    'department': student.department.name if student.department else None},
        'semesters': semesters,
        'cgpa': calculate_gpa((r.grade_points, r.course.credits) for r in results),
        'totalCourses': len(results),
        'totalCredits': total_credits,
    }


def summary(actor, student_id: int, *, session_id=None, semester=None) -> dict:
    student = _student_for(actor, student_id)
    qs = _qs().filter(student=student, is_published=True)
    if session_id:
        qs = qs.filter(session_id=session_id)
    if semester:
        qs = qs.filter(semester=semester)
    rows = list(qs.order_by('course__code'))
    distribution = {g: 0 for g in GRADE_POINTS}
    for r in rows:
        distribution[r.grade] = distribution.get(r.grade, 0) + 1
    return {
        'totalCourses': len(rows),
        'totalCredits': sum(r.course.credits for r in rows),
        'gpa': calculate_gpa((r.grade_points, r.course.credits) for r in rows),
        'gradeDistribution': distribution,
        'results': [serialize_result(r) for r in rows],
    }
