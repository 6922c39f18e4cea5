"""
Course catalogue and student enrollment.
"""
from __future__ import annotations

import base64
import json
from collections import OrderedDict

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from portal.exceptions import BadRequest, Conflict, Forbidden, NotFound
from portal.models import Course, Enrollment, User
from portal.permissions import ADMIN, HOD, LECTURER, STUDENT
from portal.services.common import iso, paginate, session_brief, user_brief

WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')


def serialize_course(c: Course, enrolled: int | None = None) -> dict:
    data = {
        'id': c.id,
        'code': c.code,
        'title': c.title,
        'description': c.description,
        'credits': c.credits,
        'level': c.level,
        'semester': c.semester,
        'department': {'id': c.department.id, 'name': c.department.name, 'code': c.department.code}
        if c.department else None,
        'lecturer': user_brief(c.lecturer),
        'schedule': c.schedule,
        'capacity': c.capacity,
        'session': session_brief(c.session),
        'isActive': c.is_active,
        'createdAt': iso(c.created_at),
    }
    if enrolled is not None:
        data['enrolledCount'] = enrolled
    return data


def serialize_enrollment(e: Enrollment) -> dict:
    return {
        'id': e.id,
        'student': user_brief(e.student),
        'course': {'id': e.course.id, 'code': e.course.code, 'title': e.course.title},
        'session': session_brief(e.session),
        'semester': e.semester,
        'status': e.status,
        'enrolledAt': iso(e.enrolled_at),
    }


def _courses_qs():
    return Course.objects.select_related('department', 'lecturer', 'session')


def list_courses(*, department=None, level=None, semester=None, search=None, page=1, page_size=None):
    qs = _courses_qs().filter(is_active=True)
    if department:
        qs = qs.filter(department_id=department)
    if level:
        qs = qs.filter(level=level)
    if semester:
        qs = qs.filter(semester=semester)
    if search:
        qs = qs.filter(Q(code__icontains=search) | Q(title__icontains=search))
    items, pagination = paginate(qs.order_by('code'), page, page_size)
    return [serialize_course(c) for c in items], pagination


def get_course(pk: int, *, include_inactive: bool = False) -> Course:
    qs = _courses_qs()
    if not include_inactive:
        qs = qs.filter(is_active=True)
    course = qs.filter(pk=pk).first()
    if not course:
        raise NotFound('Course not found')
    return course


def active_enrollment_count(course: Course) -> int:
    return Enrollment.objects.filter(course=course, status='active').count()


def create_course(actor, data: dict) -> Course:
    if Course.objects.filter(code__iexact=data['code']).exists():
        raise Conflict('Course with this code already exists')
    if actor.role not in (ADMIN, HOD) and not data.get('lecturer_id'):
        data['lecturer_id'] = actor.id
    try:
        course = Course.objects.create(**data)
    except IntegrityError:
        raise Conflict('Course with this code already exists')
    return get_course(course.pk)


def _check_can_manage(actor, course: Course) -> None:
    if actor.role in (ADMIN, HOD):
        return
    if course.lecturer_id != actor.id:
        raise Forbidden('You can only manage courses you teach')


def update_course(actor, pk: int, data: dict) -> Course:
    course = get_course(pk, include_inactive=True)
    _check_can_manage(actor, course)
    code = data.get('code')
    if code and Course.objects.filter(code__iexact=code).exclude(pk=pk).exists():
        raise Conflict('Course with this code already exists')
    for field, value in data.items():
        setattr(course, field, value)
    course.save()
    return get_course(pk, include_inactive=True)


def delete_course(actor, pk: int) -> None:
    course = get_course(pk, include_inactive=True)
    _check_can_manage(actor, course)
    course.is_active = False
    course.save(update_fields=['is_active', 'updated_at'])


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------
def _enroll(student, course: Course) -> Enrollment:
    """Create or reactivate the student's enrollment; caller holds a transaction."""
    if Enrollment.objects.filter(student=student, course=course, status='active').exists():
        raise Conflict('Already enrolled in this course')
    if active_enrollment_count(course) >= course.capacity:
        raise BadRequest('Course is full')
    enrollment, created = Enrollment.objects.get_or_create(
        student=student, course=course, session=course.session,
        defaults={'semester': course.semester, 'status': 'active'},
    )
    if not created:
        enrollment.status = 'active'
        enrollment.semester = course.semester
        enrollment.save(update_fields=['status', 'semester', 'updated_at'])
    return enrollment


def enroll(student, course_id: int) -> Enrollment:
    with transaction.atomic():
        course = Course.objects.select_for_update().filter(pk=course_id, is_active=True).first()
        if not course:
            raise NotFound('Course not found')
        enrollment = _enroll(student, course)
    return Enrollment.objects.select_related('student', 'course', 'session').get(pk=enrollment.pk)


def unenroll(student, course_id: int) -> Enrollment:
    enrollment = (Enrollment.objects.select_related('student', 'course', 'session')
                  .filter(student=student, course_id=course_id, status='active').first())
    if not enrollment:
        raise NotFound('Active enrollment not found for this course')
    enrollment.status = 'dropped'
    enrollment.save(update_fields=['status', 'updated_at'])
    return enrollment


def bulk_enroll(student, course_ids: list[int]) -> dict:
    if not course_ids:
        raise BadRequest('courseIds array is required')
    results = []
    for course_id in OrderedDict.fromkeys(course_ids):
        try:
            enroll(student, course_id)
        except NotFound:
            results.append({'courseId': course_id, 'status': 'skipped', 'reason': 'Course not found'})
        except Conflict:
            results.append({'courseId': course_id, 'status': 'skipped', 'reason': 'Already enrolled'})
        except BadRequest as e:
            results.append({'courseId': course_id, 'status': 'skipped', 'reason': str(e.detail)})
        else:
            results.append({'courseId': course_id, 'status': 'enrolled'})
    return {
        'results': results,
        'enrolled': sum(1 for r in results if r['status'] == 'enrolled'),
        'skipped': sum(1 for r in results if r['status'] == 'skipped'),
    }


def enrolled_students(actor, course_id: int, *, page=1, page_size=None):
    course = get_course(course_id, include_inactive=True)
    if actor.role == LECTURER and course.lecturer_id != actor.id:
        raise Forbidden('You can only view students of courses you teach')
    qs = (Enrollment.objects.select_related('student', 'course', 'session')
          .filter(course=course, status='active').order_by('student__last_name', 'student__first_name'))
    items, pagination = paginate(qs, page, page_size)
    return [serialize_enrollment(e) for e in items], pagination


def available_courses(student, *, semester=None, level=None, department=None) -> list[dict]:
    enrolled_ids = Enrollment.objects.filter(student=student, status='active').values_list('course_id', flat=True)
    qs = _courses_qs().filter(is_active=True).exclude(id__in=list(enrolled_ids))
    if semester:
        qs = qs.filter(semester=semester)
    if level:
        qs = qs.filter(level=level)
    if department:
        qs = qs.filter(department_id=department)
    return [serialize_course(c) for c in qs.order_by('level', 'code')]


def timetable(student) -> dict:
    enrollments = (Enrollment.objects.select_related('course__lecturer', 'session')
                   .filter(student=student, status='active'))
    by_day: dict[str, list[dict]] = {}
    total = 0
    for e in enrollments:
        total += 1
        course = e.course
        for slot in course.schedule or []:
            day = slot.get('day')
            if not day:
                continue
            by_day.setdefault(day, []).append({
                'courseId': course.id,
                'courseCode': course.code,
                'courseTitle': course.title,
                'lecturer': (course.lecturer.get_full_name() or course.lecturer.username) if course.lecturer else 'TBD',
                'day': day,
                'startTime': slot.get('startTime', ''),
                'endTime': slot.get('endTime', ''),
                'venue': slot.get('venue'),
                'session': e.session.name if e.session else None,
            })
    for entries in by_day.values():
        entries.sort(key=lambda x: x['startTime'])
    ordered = {d: by_day[d] for d in sorted(by_day, key=lambda d: WEEKDAYS.index(d) if d in WEEKDAYS else 99)}
    return {'timetable': ordered, 'totalCourses': total}


def id_card(user: User) -> dict:
    if user.role != STUDENT:
        raise Forbidden('ID cards are only available to students')
    now = timezone.now()
    name = user.get_full_name() or user.username
    qr_payload = {'studentId': user.student_id, 'name': name, 'issuedAt': now.isoformat()}
    dept = user.department
    return {
        'fullName': name,
        'studentId': user.student_id,
        'level': user.level,
        'department': dept.name if dept else None,
        'departmentCode': dept.code if dept else None,
        'faculty': dept.faculty if dept else None,
        'avatar': user.avatar or None,
        'issuedAt': now.isoformat(),
        'qrCode': base64.b64encode(json.dumps(qr_payload).encode()).decode(),
    }
