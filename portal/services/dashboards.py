"""
Per-role dashboard summaries.

Each function returns the counters and short "recent" lists one role's
home page shows.  They only read; nothing here is cached.
"""
from __future__ import annotations

from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.utils import timezone

from portal.exceptions import BadRequest
from portal.models import (
    Assignment,
    Clearance,
    Course,
    Enrollment,
    GradeAppeal,
    Hostel,
    HostelApplication,
    Payment,
    Quiz,
    QuizAttempt,
    Result,
    Scholarship,
    ScholarshipApplication,
    Submission,
    User,
)
from portal.permissions import ADMIN, BURSARY, HOD, LECTURER, STUDENT
from portal.services.common import iso, money, user_brief
from portal.services.grading import student_cgpa
from portal.services.notifications import unread_count
from portal.services.payments import calculate_fee, serialize_payment

RECENT = 5


def _course_brief(course: Course) -> dict:
    return {'id': course.id, 'code': course.code, 'title': course.title, 'credits': course.credits}


def _assignment_brief(a: Assignment) -> dict:
    return {
        'id': a.id,
        'title': a.title,
        'course': {'code': a.course.code, 'title': a.course.title},
        'deadline': iso(a.due_date),
        'totalMarks': a.total_marks,
    }


def student_dashboard(user) -> dict:
    now = timezone.now()
    enrollments = Enrollment.objects.select_related('course').filter(student=user, status='active')
    course_ids = list(enrollments.values_list('course_id', flat=True))
    submitted = Submission.objects.filter(student=user).values_list('assignment_id', flat=True)
    upcoming = (Assignment.objects.select_related('course')
                .filter(course_id__in=course_ids, due_date__gte=now)
                .exclude(id__in=submitted).order_by('due_date'))
    open_quizzes = (Quiz.objects.filter(course_id__in=course_ids, is_active=True, start_date__lte=now,
                                        end_date__gte=now)
                    .exclude(id__in=QuizAttempt.objects.filter(student=user).values('quiz_id')))
    verified = Payment.objects.filter(student=user, status=Payment.STATUS_VERIFIED).exists()
    return {
        'stats': {
            'enrolledCourses': len(course_ids),
            'pendingAssignments': upcoming.count(),
            'openQuizzes': open_quizzes.count(),
            'cgpa': student_cgpa(user),
            'paymentStatus': 'Successful' if verified else 'Pending',
        },
        'recentCourses': [_course_brief(e.course) for e in enrollments.order_by('-enrolled_at')[:RECENT]],
        'recentAssignments': [_assignment_brief(a) for a in upcoming[:RECENT]],
        'unreadNotifications': unread_count(user),
    }


def lecturer_dashboard(user) -> dict:
    courses = Course.objects.filter(lecturer=user, is_active=True)
    active = Enrollment.objects.filter(course__in=courses, status='active')
    pending = Submission.objects.filter(assignment__course__in=courses, grade__isnull=True)
    recent_courses = courses.annotate(
        students=Count('enrollments', filter=Q(enrollments__status='active')),
    ).order_by('-created_at')[:RECENT]
    recent_assignments = (Assignment.objects.select_related('course')
                          .filter(course__in=courses).order_by('-created_at')[:RECENT])
    return {
        'stats': {
            'assignedCourses': courses.count(),
            'totalStudents': active.values('student_id').distinct().count(),
            'pendingSubmissions': pending.count(),
            'activeQuizzes': Quiz.objects.filter(course__in=courses, is_active=True).count(),
        },
        'recentCourses': [{**_course_brief(c), 'studentCount': c.students} for c in recent_courses],
        'recentAssignments': [_assignment_brief(a) for a in recent_assignments],
        'unreadNotifications': unread_count(user),
    }


def hod_dashboard(user) -> dict:
    if not user.department_id:
        raise BadRequest('Department not found for user')
    dept = user.department_id
    courses = Course.objects.filter(department_id=dept)
    lecturers = User.objects.filter(department_id=dept, role=LECTURER)
    recent = (Enrollment.objects.select_related('student', 'course')
              .filter(course__in=courses).order_by('-enrolled_at')[:10])
    return {
        'departmentStats': {
            'totalStudents': User.objects.filter(department_id=dept, role=STUDENT).count(),
            'totalStaff': lecturers.count(),
            'totalCourses': courses.count(),
            'activeLecturers': lecturers.filter(is_active=True).count(),
        },
        'pendingApprovals': {
            'results': Result.objects.filter(course__in=courses, approved_by_hod=False, is_published=False,
                                             hod_rejected_at__isnull=True).count(),
            'clearances': Clearance.objects.filter(student__department_id=dept,
                                                   overall_status=Clearance.STATUS_IN_PROGRESS).count(),
            'appeals': GradeAppeal.objects.filter(course__in=courses, status__in=[
                GradeAppeal.STATUS_PENDING, GradeAppeal.STATUS_IN_REVIEW]).count(),
        },
        'recentActivities': [{
            'id': e.id,
            'type': 'enrollment',
            'student': e.student.full_name,
            'course': f'{e.course.code} - {e.course.title}',
            'date': iso(e.enrolled_at),
        } for e in recent],
        'unreadNotifications': unread_count(user),
    }


def _expected_tuition() -> Decimal:
    levels = User.objects.filter(role=STUDENT, is_active=True).values_list('level', flat=True)
    return sum((calculate_fee('tuition', level) for level in levels), Decimal('0'))


def bursary_dashboard(user) -> dict:
    counts = Payment.objects.aggregate(
        total=Count('id'),
        verified=Count('id', filter=Q(status=Payment.STATUS_VERIFIED)),
        pending=Count('id', filter=Q(status__in=[Payment.STATUS_PENDING, Payment.STATUS_PROCESSING])),
        rejected=Count('id', filter=Q(status=Payment.STATUS_REJECTED)),
        paid=Sum('amount', filter=Q(status=Payment.STATUS_VERIFIED, type='tuition')),
    )
    expected = _expected_tuition()
    paid = counts.pop('paid') or Decimal('0')
    recent = Payment.objects.select_related('student', 'session', 'verified_by').order_by('-created_at')[:10]
    return {
        'paymentStats': counts,
        'revenue': {
            'expectedTuition': money(expected),
            'paidTuition': money(paid),
            'outstanding': money(max(Decimal('0'), expected - paid)),
        },
        'scholarships': {
            'total': Scholarship.objects.filter(is_active=True).count(),
            'pendingApplications': ScholarshipApplication.objects.filter(status='pending').count(),
        },
        'recentPayments': [serialize_payment(p) for p in recent],
        'unreadNotifications': unread_count(user),
    }


def admin_dashboard(user) -> dict:
    users = User.objects.aggregate(
        total=Count('id'),
        students=Count('id', filter=Q(role=STUDENT)),
        lecturers=Count('id', filter=Q(role=LECTURER)),
        hods=Count('id', filter=Q(role=HOD)),
        bursary=Count('id', filter=Q(role=BURSARY)),
        admins=Count('id', filter=Q(role=ADMIN)),
        active=Count('id', filter=Q(is_active=True)),
    )
    payments = Payment.objects.aggregate(
        verified_count=Count('id', filter=Q(status=Payment.STATUS_VERIFIED)),
        verified_amount=Sum('amount', filter=Q(status=Payment.STATUS_VERIFIED)),
        pending_count=Count('id', filter=Q(status=Payment.STATUS_PENDING)),
        pending_amount=Sum('amount', filter=Q(status=Payment.STATUS_PENDING)),
    )
    recent_payments = (Payment.objects.select_related('student', 'session', 'verified_by')
                       .order_by('-created_at')[:RECENT])
    return {
        'users': users,
        'courses': {
            'total': Course.objects.count(),
            'active': Course.objects.filter(is_active=True).count(),
        },
        'enrollments': {
            'total': Enrollment.objects.count(),
            'active': Enrollment.objects.filter(status='active').count(),
        },
        'payments': {
            'verified': {'count': payments['verified_count'], 'amount': money(payments['verified_amount'])},
            'pending': {'count': payments['pending_count'], 'amount': money(payments['pending_amount'])},
        },
        'hostels': {
            'total': Hostel.objects.count(),
            'applications': HostelApplication.objects.count(),
            'allocated': HostelApplication.objects.filter(status=HostelApplication.STATUS_ALLOCATED).count(),
        },
        'academic': {
            'assignments': Assignment.objects.count(),
            'quizzes': Quiz.objects.count(),
            'submissions': Submission.objects.count(),
            'openAppeals': GradeAppeal.objects.filter(status__in=[
                GradeAppeal.STATUS_PENDING, GradeAppeal.STATUS_IN_REVIEW]).count(),
        },
        'recentUsers': [{**user_brief(u), 'role': u.role, 'createdAt': iso(u.date_joined)}
                        for u in User.objects.order_by('-date_joined', '-id')[:RECENT]],
        'recentPayments': [serialize_payment(p) for p in recent_payments],
        'unreadNotifications': unread_count(user),
    }


BUILDERS = {
    STUDENT: student_dashboard,
    LECTURER: lecturer_dashboard,
    HOD: hod_dashboard,
    BURSARY: bursary_dashboard,
    ADMIN: admin_dashboard,
}


def dashboard_for(user) -> dict:
    return {'role': user.role, **BUILDERS[user.role](user)}
