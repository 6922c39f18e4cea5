"""
Course assignments and student submissions.

Each student submits once.  A submission after the due date is only
accepted when the assignment allows late work, and the assignment's
late penalty (a percentage) is taken off the grade when it is marked.
"""
from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import Assignment, Course, Enrollment, Submission
from portal.permissions import ADMIN, STUDENT
from portal.services.common import iso, paginate, user_brief
from portal.services.notifications import create_bulk_notifications, create_notification

logger = logging.getLogger(__name__)


def serialize_assignment(a: Assignment) -> dict:
    return {
        'id': a.id,
        'course': {'id': a.course.id, 'code': a.course.code, 'title': a.course.title},
        'title': a.title,
        'description': a.description,
        'dueDate': iso(a.due_date),
        'totalMarks': a.total_marks,
        'attachments': a.attachments,
        'allowLateSubmission': a.allow_late_submission,
        'latePenalty': a.late_penalty,
        'createdBy': user_brief(a.created_by),
        'createdAt': iso(a.created_at),
    }


def serialize_submission(s: Submission) -> dict:
    return {
        'id': s.id,
        'assignmentId': s.assignment_id,
        'student': user_brief(s.student),
        'files': s.files,
        'comment': s.comment,
        'submittedAt': iso(s.submitted_at),
        'isLate': s.is_late,
        'grade': s.grade,
        'feedback': s.feedback or None,
        'gradedBy': user_brief(s.graded_by),
        'gradedAt': iso(s.graded_at),
    }


def apply_late_penalty(grade: float, penalty: int) -> float:
    return round(grade * (1 - penalty / 100), 2)


def _is_enrolled(student, course_id: int) -> bool:
    return Enrollment.objects.filter(student=student, course_id=course_id, status='active').exists()


def _assignments_qs():
    return Assignment.objects.select_related('course', 'created_by')


def _get(pk: int) -> Assignment:
    assignment = _assignments_qs().filter(pk=pk).first()
    if not assignment:
        raise NotFound('Assignment not found')
    return assignment


def _check_teaches(actor, course: Course) -> None:
    if actor.role != ADMIN and course.lecturer_id != actor.id:
        raise Forbidden('You are not authorized to manage assignments for this course')


def create_assignment(actor, *, course_id: int, title: str, description: str, due_date, total_marks: int = 100,
                      attachments=None, allow_late_submission: bool = False, late_penalty: int = 0) -> Assignment:
    course = Course.objects.filter(pk=course_id).first()
    if not course:
        raise NotFound('Course not found')
    _check_teaches(actor, course)
    assignment = Assignment.objects.create(
        course=course, title=title, description=description, due_date=due_date, total_marks=total_marks,
        attachments=attachments or [], allow_late_submission=allow_late_submission,
        late_penalty=late_penalty, created_by=actor,
    )
    student_ids = Enrollment.objects.filter(course=course, status='active').values_list('student_id', flat=True)
    create_bulk_notifications(
        list(student_ids), 'info', 'New Assignment Posted',
        f'New assignment "{title}" has been posted for {course.code}. Due date: {due_date:%Y-%m-%d}',
        f'/assignments/{assignment.id}',
    )
    logger.info('Assignment %s created for course %s by user %s', assignment.id, course.code, actor.id)
    return assignment


def list_assignments(user, *, course_id=None, page=1, page_size=None):
    qs = _assignments_qs()
    if user.role == STUDENT:
        course_ids = Enrollment.objects.filter(student=user, status='active').values_list('course_id', flat=True)
        qs = qs.filter(course_id__in=list(course_ids))
    if course_id:
        qs = qs.filter(course_id=course_id)
    items, pagination = paginate(qs.order_by('due_date', 'id'), page, page_size)
    return [serialize_assignment(a) for a in items], pagination


def get_assignment(user, pk: int) -> Assignment:
    assignment = _get(pk)
    if user.role == STUDENT and not _is_enrolled(user, assignment.course_id):
        raise Forbidden('You are not enrolled in this course')
    return assignment


def _owned(actor, pk: int) -> Assignment:
    assignment = _get(pk)
    if actor.role != ADMIN and assignment.created_by_id != actor.id:
        raise Forbidden('You are not authorized to modify this assignment')
    return assignment


def update_assignment(actor, pk: int, data: dict) -> Assignment:
    assignment = _owned(actor, pk)
    for field, value in data.items():
        setattr(assignment, field, value)
    assignment.save()
    return assignment


def delete_assignment(actor, pk: int) -> None:
    assignment = _owned(actor, pk)
    logger.info('Assignment %s deleted by user %s', assignment.id, actor.id)
    assignment.delete()


def submit(student, pk: int, *, files: list[dict], comment: str = '') -> Submission:
    assignment = _get(pk)
    if not _is_enrolled(student, assignment.course_id):
        raise Forbidden('You are not enrolled in this course')
    if Submission.objects.filter(assignment=assignment, student=student).exists():
        raise BadRequest('You have already submitted this assignment')
    is_late = timezone.now() > assignment.due_date
    if is_late and not assignment.allow_late_submission:
        raise BadRequest('Assignment submission deadline has passed')
    if not files:
        raise BadRequest('Please attach at least one file')
    try:
        with transaction.atomic():
            submission = Submission.objects.create(
                assignment=assignment, student=student, files=files, comment=comment, is_late=is_late,
            )
    except IntegrityError:
        raise BadRequest('You have already submitted this assignment')
    logger.info('Submission %s for assignment %s (late=%s)', submission.id, assignment.id, is_late)
    return submission


def list_submissions(actor, pk: int) -> list[dict]:
    assignment = _get(pk)
    _check_teaches(actor, assignment.course)
    qs = (Submission.objects.select_related('student', 'graded_by')
          .filter(assignment=assignment).order_by('-submitted_at', '-id'))
    return [serialize_submission(s) for s in qs]


def grade_submission(actor, pk: int, submission_id: int, *, grade: float, feedback: str = '') -> Submission:
    with transaction.atomic():
        assignment = _get(pk)
        _check_teaches(actor, assignment.course)
        submission = (Submission.objects.select_for_update().select_related('student')
                      .filter(pk=submission_id, assignment=assignment).first())
        if not submission:
            raise NotFound('Submission not found')
        if not 0 <= grade <= assignment.total_marks:
            raise BadRequest(f'Grade must be between 0 and {assignment.total_marks}')
        final = apply_late_penalty(grade, assignment.late_penalty) if submission.is_late else grade
        submission.grade = final
        submission.feedback = feedback
        submission.graded_by = actor
        submission.graded_at = timezone.now()
        submission.save()

    create_notification(
        submission.student, 'success', 'Assignment Graded',
        f'Your submission for "{assignment.title}" has been graded. Score: {final:g}/{assignment.total_marks}',
        f'/assignments/{assignment.id}',
    )
    return submission


def my_submission(student, pk: int) -> Submission:
    submission = (Submission.objects.select_related('student', 'graded_by')
                  .filter(assignment_id=pk, student=student).first())
    if not submission:
        raise NotFound('No submission found')
    return submission
