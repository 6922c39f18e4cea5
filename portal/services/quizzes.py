"""
Timed course quizzes.

A quiz carries its questions (with correct answers) as JSON.  Students
never see ``correctAnswer``; they start a single attempt inside the
quiz window and must submit within ``duration`` minutes plus
``settings.QUIZ_GRACE_MINUTES``.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Avg, Max, Min
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import Course, Enrollment, Quiz, QuizAttempt, User
from portal.permissions import ADMIN, STUDENT
from portal.services.common import iso, paginate, user_brief
from portal.services.notifications import create_bulk_notifications, create_notification

logger = logging.getLogger(__name__)


def _strip_answers(questions: list[dict]) -> list[dict]:
    return [{k: v for k, v in q.items() if k != 'correctAnswer'} for q in questions or []]


def serialize_quiz(q: Quiz, *, hide_answers: bool = False) -> dict:
    questions = q.questions or []
    return {
        'id': q.id,
        'course': {'id': q.course.id, 'code': q.course.code, 'title': q.course.title},
        'title': q.title,
        'description': q.description,
        'duration': q.duration,
        'totalMarks': q.total_marks,
        'startDate': iso(q.start_date),
        'endDate': iso(q.end_date),
        'questions': _strip_answers(questions) if hide_answers else questions,
        'questionCount': len(questions),
        'isActive': q.is_active,
        'createdBy': user_brief(q.created_by),
        'createdAt': iso(q.created_at),
    }


def serialize_attempt(a: QuizAttempt) -> dict:
    return {
        'id': a.id,
        'quizId': a.quiz_id,
        'student': user_brief(a.student),
        'answers': a.answers,
        'score': a.score,
        'percentage': a.percentage,
        'startedAt': iso(a.started_at),
        'submittedAt': iso(a.submitted_at),
        'isCompleted': a.is_completed,
    }


def _is_enrolled(student, course_id: int) -> bool:
    return Enrollment.objects.filter(student=student, course_id=course_id, status='active').exists()


def validate_questions(questions: list[dict], total_marks: int) -> None:
    if not questions:
        raise BadRequest('At least one question is required')
    for i, q in enumerate(questions, start=1):
        if q.get('type') not in Quiz.QUESTION_TYPES:
            raise BadRequest(f'Question {i}: unsupported type {q.get("type")!r}')
        if q.get('type') == 'multiple_choice' and len(q.get('options') or []) < 2:
            raise BadRequest(f'Question {i}: multiple choice questions need at least two options')
    marks = sum(q.get('marks', 0) for q in questions)
    if marks != total_marks:
        raise BadRequest(f'Total marks ({total_marks}) must match sum of question marks ({marks})')


def create_quiz(actor: User, *, course_id: int, title: str, duration: int, total_marks: int,
                start_date, end_date, questions: list[dict], description: str = '') -> Quiz:
    course = Course.objects.filter(pk=course_id).first()
    if not course:
        raise NotFound('Course not found')
    if actor.role != ADMIN and course.lecturer_id != actor.id:
        raise Forbidden('You can only create quizzes for courses you teach')
    if end_date <= start_date:
        raise BadRequest('End date must be after start date')
    validate_questions(questions, total_marks)

    quiz = Quiz.objects.create(
        course=course, title=title, description=description, duration=duration,
        total_marks=total_marks, start_date=start_date, end_date=end_date,
        questions=questions, created_by=actor,
    )
    student_ids = Enrollment.objects.filter(course=course, status='active').values_list('student_id', flat=True)
    create_bulk_notifications(
        list(student_ids), 'info', 'New Quiz Available',
        f'A new quiz "{title}" has been posted for {course.code}.', f'/quizzes/{quiz.id}',
    )
    logger.info('Quiz %s created for course %s by user %s', quiz.id, course.code, actor.id)
    return quiz


def _quizzes_qs():
    return Quiz.objects.select_related('course', 'created_by')


def list_quizzes(user, *, course_id=None, active=None, page=1, page_size=None):
    qs = _quizzes_qs()
    if user.role == STUDENT:
        course_ids = Enrollment.objects.filter(student=user, status='active').values_list('course_id', flat=True)
        qs = qs.filter(course_id__in=list(course_ids))
    if course_id:
        qs = qs.filter(course_id=course_id)
    if active is not None:
        qs = qs.filter(is_active=active)
    items, pagination = paginate(qs.order_by('-start_date'), page, page_size)
    hide = user.role == STUDENT
    return [serialize_quiz(q, hide_answers=hide) for q in items], pagination


def get_quiz(user, pk: int) -> dict:
    quiz = _quizzes_qs().filter(pk=pk).first()
    if not quiz:
        raise NotFound('Quiz not found')
    if user.role == STUDENT:
        if not _is_enrolled(user, quiz.course_id):
            raise Forbidden('You are not enrolled in this course')
        return serialize_quiz(quiz, hide_answers=True)
    return serialize_quiz(quiz)


def _owned_quiz(actor, pk: int) -> Quiz:
    quiz = _quizzes_qs().filter(pk=pk).first()
    if not quiz:
        raise NotFound('Quiz not found')
    if actor.role != ADMIN and quiz.created_by_id != actor.id:
        raise Forbidden('You can only manage quizzes you created')
    return quiz


def update_quiz(actor, pk: int, data: dict) -> Quiz:
    quiz = _owned_quiz(actor, pk)
    if quiz.attempts.exists():
        raise BadRequest('Cannot update quiz that has attempts')
    for field, value in data.items():
        setattr(quiz, field, value)
    if quiz.end_date <= quiz.start_date:
        raise BadRequest('End date must be after start date')
    if 'questions' in data or 'total_marks' in data:
        validate_questions(quiz.questions, quiz.total_marks)
    quiz.save()
    return quiz


def delete_quiz(actor, pk: int) -> None:
    _owned_quiz(actor, pk).delete()


def start_quiz(student, pk: int) -> tuple[QuizAttempt, Quiz]:
    quiz = _quizzes_qs().filter(pk=pk).first()
    if not quiz:
        raise NotFound('Quiz not found')
    if not quiz.is_active:
        raise BadRequest('Quiz is not active')
    now = timezone.now()
    if now < quiz.start_date:
        raise BadRequest('Quiz has not started yet')
    if now > quiz.end_date:
        raise BadRequest('Quiz has ended')
    if not _is_enrolled(student, quiz.course_id):
        raise Forbidden('You are not enrolled in this course')
    if QuizAttempt.objects.filter(quiz=quiz, student=student).exists():
        raise BadRequest('You have already attempted this quiz')
    try:
        with transaction.atomic():
            attempt = QuizAttempt.objects.create(quiz=quiz, student=student)
    except IntegrityError:
        raise BadRequest('You have already attempted this quiz')
    return attempt, quiz


def _normalize(value) -> str:
    return str(value if value is not None else '').strip().lower()


def grade_answers(questions: list[dict], answers: list[dict]) -> tuple[list[dict], float]:
    """Mark ``answers`` (``{questionIndex, answer}``) against ``questions``.

    Only the first answer given for a question counts.
    """
    graded = []
    score = 0.0
    seen = set()
    for ans in answers:
        idx = ans.get('questionIndex')
        if not isinstance(idx, int) or not 0 <= idx < len(questions) or idx in seen:
            continue
        seen.add(idx)
        question = questions[idx]
        correct = _normalize(ans.get('answer')) == _normalize(question.get('correctAnswer'))
        awarded = question.get('marks', 0) if correct else 0
        score += awarded
        graded.append({
            'questionIndex': idx,
            'answer': ans.get('answer'),
            'isCorrect': correct,
            'marksAwarded': awarded,
        })
    return graded, score


def submit_quiz(student, pk: int, answers: list[dict]) -> QuizAttempt:
    with transaction.atomic():
        attempt = (QuizAttempt.objects.select_for_update().select_related('quiz')
                   .filter(quiz_id=pk, student=student).first())
        if not attempt:
            raise NotFound('Quiz attempt not found. Start the quiz first')
        if attempt.is_completed:
            raise BadRequest('Quiz has already been submitted')
        quiz = attempt.quiz
        deadline = attempt.started_at + timedelta(minutes=quiz.duration + settings.QUIZ_GRACE_MINUTES)
        now = timezone.now()
        if now > deadline:
            raise BadRequest('Time limit exceeded')

        graded, score = grade_answers(quiz.questions or [], answers)
        attempt.answers = graded
        attempt.score = score
        attempt.percentage = round(score / quiz.total_marks * 100, 2) if quiz.total_marks else 0.0
        attempt.submitted_at = now
        attempt.is_completed = True
        attempt.save()

    create_notification(
        student, 'success', 'Quiz Submitted',
        f'You scored {attempt.score:g}/{quiz.total_marks} ({attempt.percentage}%) on "{quiz.title}"',
        f'/quizzes/{quiz.id}',
    )
    return attempt


def quiz_attempts(actor, pk: int) -> dict:
    quiz = _quizzes_qs().filter(pk=pk).first()
    if not quiz:
        raise NotFound('Quiz not found')
    if actor.role != ADMIN and quiz.course.lecturer_id != actor.id:
        raise Forbidden('You can only view attempts for courses you teach')
    attempts = QuizAttempt.objects.select_related('student').filter(quiz=quiz).order_by('-score', 'submitted_at')
    agg = attempts.filter(is_completed=True).aggregate(
        avg_score=Avg('score'), high=Max('score'), low=Min('score'), avg_pct=Avg('percentage'),
    )
    completed = attempts.filter(is_completed=True).count()
    return {
        'quiz': {'id': quiz.id, 'title': quiz.title, 'totalMarks': quiz.total_marks},
        'attempts': [serialize_attempt(a) for a in attempts],
        'stats': {
            'totalAttempts': completed,
            'averageScore': round(agg['avg_score'] or 0, 2),
            'highestScore': agg['high'] or 0,
            'lowestScore': agg['low'] or 0,
            'averagePercentage': round(agg['avg_pct'] or 0, 2),
        },
    }


def my_attempt(student, pk: int) -> Optional[dict]:
    attempt = QuizAttempt.objects.select_related('student', 'quiz').filter(quiz_id=pk, student=student).first()
    if not attempt:
        raise NotFound('No attempt found for this quiz')
    return serialize_attempt(attempt)
