"""
Class attendance.

A record lists the students marked present, absent and late for one
class meeting.  Only students actively enrolled in the course can be
marked, and a student appears in at most one of the three lists.  The
record percentage counts students marked present only.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import AttendanceRecord, Course, Enrollment
from portal.permissions import ADMIN
from portal.services.common import iso, paginate, user_brief
from portal.services.notifications import create_bulk_notifications

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = 75
CRITICAL_THRESHOLD = 60
RECENT_LIMIT = 50


def percentage(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def attendance_status(value: float) -> str:
    if value < CRITICAL_THRESHOLD:
        return 'Critical'
    if value < WARNING_THRESHOLD:
        return 'Warning'
    return 'Good'


def _course_brief(course: Course) -> dict:
    return {'id': course.id, 'code': course.code, 'title': course.title}


def serialize_record(r: AttendanceRecord, *, detailed: bool = False) -> dict:
    data = {
        'id': r.id,
        'course': _course_brief(r.course),
        'date': iso(r.date),
        'topic': r.topic,
        'attendees': len(r.attendees),
        'absentees': len(r.absentees),
        'late': len(r.late),
        'totalStudents': r.total_students,
        'percentage': r.percentage,
    }
    if detailed:
        data.update({
            'attendeeIds': r.attendees,
            'absenteeIds': r.absentees,
            'lateIds': r.late,
            'lecturer': user_brief(r.lecturer),
            'academicYear': r.academic_year,
        })
    return data


def _enrolled_ids(course: Course) -> set[int]:
    return set(Enrollment.objects.filter(course=course, status='active').values_list('student_id', flat=True))


def _unique(ids) -> list[int]:
    return list(dict.fromkeys(ids or []))


def _check_marks(course: Course, attendees: list[int], absentees: list[int], late: list[int]) -> None:
    marked = attendees + absentees + late
    if len(marked) != len(set(marked)):
        raise BadRequest('A student can only be marked once per class')
    unknown = sorted(set(marked) - _enrolled_ids(course))
    if unknown:
        raise BadRequest(f'Students not enrolled in this course: {", ".join(str(i) for i in unknown)}')


def _taught_course(actor, course_id: int) -> Course:
    course = Course.objects.filter(pk=course_id).first()
    if not course:
        raise NotFound('Course not found')
    if actor.role != ADMIN and course.lecturer_id != actor.id:
        raise Forbidden('You can only mark attendance for your courses')
    return course


def _notify_absentees(record: AttendanceRecord, absentees) -> None:
    course = record.course
    create_bulk_notifications(
        absentees, 'warning', 'Attendance Alert',
        f'You were marked absent for {course.code} - {course.title} on {record.date:%Y-%m-%d}',
        f'/courses/{course.id}/attendance',
    )


def record_attendance(actor, *, course_id: int, date=None, topic: str = '', attendees=None, absentees=None,
                      late=None) -> AttendanceRecord:
    course = _taught_course(actor, course_id)
    attendees, absentees, late = _unique(attendees), _unique(absentees), _unique(late)
    _check_marks(course, attendees, absentees, late)
    total = Enrollment.objects.filter(course=course, status='active').count()
    record = AttendanceRecord.objects.create(
        course=course, lecturer=actor, date=date or timezone.now(), topic=topic,
        attendees=attendees, absentees=absentees, late=late, total_students=total,
        percentage=percentage(len(attendees), total), academic_year=settings.CURRENT_ACADEMIC_YEAR,
    )
    _notify_absentees(record, absentees)
    logger.info('Attendance %s recorded for %s: %d/%d present', record.id, course.code, len(attendees), total)
    return record


def _records_qs():
    return AttendanceRecord.objects.select_related('course', 'lecturer')


def list_records(actor, *, course_id=None, page=1, page_size=None):
    qs = _records_qs()
    if actor.role != ADMIN:
        qs = qs.filter(course__lecturer=actor)
    if course_id:
        qs = qs.filter(course_id=course_id)
    items, pagination = paginate(qs.order_by('-date', '-id'), page, page_size)
    return [serialize_record(r) for r in items], pagination


def _owned_record(actor, pk: int) -> AttendanceRecord:
    record = _records_qs().filter(pk=pk).first()
    if not record:
        raise NotFound('Attendance record not found')
    if actor.role != ADMIN and record.lecturer_id != actor.id:
        raise Forbidden('You can only manage attendance you recorded')
    return record


def get_record(actor, pk: int) -> AttendanceRecord:
    return _owned_record(actor, pk)


def update_record(actor, pk: int, data: dict) -> AttendanceRecord:
    record = _owned_record(actor, pk)
    previous_absentees = set(record.absentees)
    for field in ('attendees', 'absentees', 'late'):
        if field in data:
            setattr(record, field, _unique(data[field]))
    if 'topic' in data:
        record.topic = data['topic']
    _check_marks(record.course, record.attendees, record.absentees, record.late)
    record.percentage = percentage(len(record.attendees), record.total_students)
    record.save()
    newly_absent = [sid for sid in record.absentees if sid not in previous_absentees]
    if newly_absent:
        _notify_absentees(record, newly_absent)
    return record


def delete_record(actor, pk: int) -> None:
    record = _owned_record(actor, pk)
    logger.info('Attendance %s for course %s deleted by user %s', record.id, record.course_id, actor.id)
    record.delete()


def course_summary(course: Course, student_id: int, records: list[AttendanceRecord]) -> dict:
    total = len(records)
    attended = sum(1 for r in records if student_id in r.attendees)
    late = sum(1 for r in records if student_id in r.late)
    rate = percentage(attended, total)
    return {
        'course': _course_brief(course),
        'totalClasses': total,
        'attended': attended,
        'late': late,
        'absent': max(0, total - attended - late),
        'percentage': rate,
        'status': attendance_status(rate) if total else 'Good',
    }


def student_attendance(student, *, course_id: Optional[int] = None) -> dict:
    enrollments = Enrollment.objects.select_related('course').filter(student=student, status='active')
    if course_id:
        enrollments = enrollments.filter(course_id=course_id)
    courses = []
    for enrollment in enrollments.order_by('course__code'):
        records = list(AttendanceRecord.objects.filter(course=enrollment.course))
        courses.append(course_summary(enrollment.course, student.id, records))
    return {'courses': courses}


def lecturer_overview(actor) -> dict:
    courses = Course.objects.filter(is_active=True)
    if actor.role != ADMIN:
        courses = courses.filter(lecturer=actor)
    stats = []
    for course in courses.order_by('code'):
        rates = list(AttendanceRecord.objects.filter(course=course).values_list('percentage', flat=True))
        stats.append({
            'course': _course_brief(course),
            'totalRecords': len(rates),
            'averageAttendance': round(sum(rates) / len(rates), 1) if rates else 0.0,
        })
    recent = _records_qs().filter(course__in=courses).order_by('-date', '-id')[:RECENT_LIMIT]
    return {'courseStats': stats, 'recentRecords': [serialize_record(r) for r in recent]}
