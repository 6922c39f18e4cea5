"""
URL mappings for the portal API.

Every endpoint lives under ``/api/v1/``.  Trailing slashes are omitted
because the front-end calls paths without them.
"""
from django.urls import path

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view, me_view, register_view
from .views import (
    appeals,
    assignments,
    attendance,
    bursary,
    clearance,
    courses,
    dashboards,
    hostels,
    messages,
    notifications,
    payments,
    quizzes,
    results,
    scholarships,
    students,
    users,
)

urlpatterns = [
    # auth
    path('auth/register', register_view, name='register_view'),
    path('auth/login', login_view, name='login_view'),
    path('auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('auth/logout', jwt_logout_view, name='jwt_logout_view'),
    path('auth/me', me_view, name='me_view'),

    # users
    path('users', users.user_list, name='user_list'),
    path('users/stats', users.user_stats, name='user_stats'),
    path('users/search', users.user_search, name='user_search'),
    path('users/me', users.my_profile, name='my_profile'),
    path('users/me/deactivate', users.deactivate_my_account, name='deactivate_my_account'),
    path('users/change-password', users.change_password, name='change_password'),
    path('users/department/<int:department_id>/students', users.department_students, name='department_students'),
    path('users/<int:pk>', users.user_detail, name='user_detail'),
    path('users/<int:pk>/activate', users.user_activate, name='user_activate'),
    path('users/<int:pk>/deactivate', users.user_deactivate, name='user_deactivate'),
    path('users/<int:pk>/role', users.user_role, name='user_role'),

    # courses and enrollment
    path('courses', courses.course_list, name='course_list'),
    path('courses/<int:pk>', courses.course_detail, name='course_detail'),
    path('courses/<int:pk>/enroll', courses.course_enroll, name='course_enroll'),
    path('courses/<int:pk>/unenroll', courses.course_unenroll, name='course_unenroll'),
    path('courses/<int:pk>/students', courses.course_students, name='course_students'),

    # student self-service
    path('students/timetable', students.student_timetable, name='student_timetable'),
    path('students/courses/available', students.student_available_courses, name='student_available_courses'),
    path('students/courses/enroll', students.student_bulk_enroll, name='student_bulk_enroll'),
    path('students/courses/<int:course_id>/drop', students.student_drop_course, name='student_drop_course'),
    path('students/id-card', students.student_id_card, name='student_id_card'),

    # payments
    path('payments', payments.payment_list, name='payment_list'),
    path('payments/initialize', payments.payment_initialize, name='payment_initialize'),
    path('payments/verify', payments.payment_verify, name='payment_verify'),
    path('payments/stats', payments.payment_stats, name='payment_stats'),
    path('payments/fees', payments.payment_fee, name='payment_fee'),
    path('payments/webhook', payments.payment_webhook, name='payment_webhook'),
    path('payments/student/<int:student_id>', payments.student_payments, name='student_payments'),
    path('payments/<int:pk>', payments.payment_detail, name='payment_detail'),
    path('payments/<int:pk>/verify', payments.payment_manual_verify, name='payment_manual_verify'),
    path('payments/<int:pk>/reject', payments.payment_reject, name='payment_reject'),
    path('payments/<int:pk>/receipt', payments.payment_receipt, name='payment_receipt'),

    # hostels
    path('hostels', hostels.hostel_list, name='hostel_list'),
    path('hostels/stats', hostels.hostel_stats, name='hostel_stats'),
    path('hostels/apply', hostels.hostel_apply, name='hostel_apply'),
    path('hostels/applications', hostels.application_list, name='hostel_application_list'),
    path('hostels/applications/me', hostels.my_application, name='hostel_my_application'),
    path('hostels/applications/<int:pk>', hostels.application_detail, name='hostel_application_detail'),
    path('hostels/applications/<int:pk>/approve', hostels.application_approve, name='hostel_application_approve'),
    path('hostels/applications/<int:pk>/reject', hostels.application_reject, name='hostel_application_reject'),
    path('hostels/applications/<int:pk>/allocate', hostels.application_allocate, name='hostel_application_allocate'),
    path('hostels/<int:pk>', hostels.hostel_detail, name='hostel_detail'),
    path('hostels/<int:pk>/rooms/<str:room_number>', hostels.hostel_room, name='hostel_room'),
    path('hostels/<int:pk>/rooms/<str:room_number>/evict', hostels.hostel_room_evict, name='hostel_room_evict'),

    # quizzes
    path('quizzes', quizzes.quiz_list, name='quiz_list'),
    path('quizzes/<int:pk>', quizzes.quiz_detail, name='quiz_detail'),
    path('quizzes/<int:pk>/start', quizzes.quiz_start, name='quiz_start'),
    path('quizzes/<int:pk>/submit', quizzes.quiz_submit, name='quiz_submit'),
    path('quizzes/<int:pk>/attempts', quizzes.quiz_attempts, name='quiz_attempts'),
    path('quizzes/<int:pk>/my-attempt', quizzes.quiz_my_attempt, name='quiz_my_attempt'),

    # assignments
    path('assignments', assignments.assignment_list, name='assignment_list'),
    path('assignments/<int:pk>', assignments.assignment_detail, name='assignment_detail'),
    path('assignments/<int:pk>/submit', assignments.assignment_submit, name='assignment_submit'),
    path('assignments/<int:pk>/submissions', assignments.assignment_submissions, name='assignment_submissions'),
    path('assignments/<int:pk>/submissions/<int:submission_id>/grade', assignments.assignment_grade,
         name='assignment_grade'),
    path('assignments/<int:pk>/my-submission', assignments.assignment_my_submission,
         name='assignment_my_submission'),

    # attendance
    path('attendance', attendance.attendance_list, name='attendance_list'),
    path('attendance/overview', attendance.attendance_overview, name='attendance_overview'),
    path('attendance/me', attendance.my_attendance, name='my_attendance'),
    path('attendance/<int:pk>', attendance.attendance_detail, name='attendance_detail'),

    # messages
    path('messages', messages.message_list, name='message_list'),
    path('messages/unread-count', messages.message_unread_count, name='message_unread_count'),
    path('messages/<int:pk>', messages.message_detail, name='message_detail'),
    path('messages/<int:pk>/read', messages.message_read, name='message_read'),

    # notifications
    path('notifications', notifications.notification_list, name='notification_list'),
    path('notifications/unread-count', notifications.notification_unread_count, name='notification_unread_count'),
    path('notifications/recent', notifications.notification_recent, name='notification_recent'),
    path('notifications/read-all', notifications.notification_read_all, name='notification_read_all'),
    path('notifications/clear-read', notifications.notification_clear_read, name='notification_clear_read'),
    path('notifications/<int:pk>', notifications.notification_detail, name='notification_detail'),
    path('notifications/<int:pk>/read', notifications.notification_read, name='notification_read'),

    # clearance
    path('clearance', clearance.clearance_list, name='clearance_list'),
    path('clearance/me', clearance.my_clearance, name='my_clearance'),
    path('clearance/documents', clearance.clearance_request_document, name='clearance_request_document'),
    path('clearance/<int:pk>', clearance.clearance_detail, name='clearance_detail'),
    path('clearance/<int:pk>/department', clearance.clearance_department_status, name='clearance_department_status'),
    path('clearance/<int:pk>/approve', clearance.clearance_approve, name='clearance_approve'),
    path('clearance/<int:pk>/reject', clearance.clearance_reject, name='clearance_reject'),
    path('clearance/<int:pk>/documents/<str:request_id>', clearance.clearance_document_status,
         name='clearance_document_status'),

    # scholarships
    path('scholarships', scholarships.scholarship_list, name='scholarship_list'),
    path('scholarships/available', scholarships.scholarship_available, name='scholarship_available'),
    path('scholarships/applications', scholarships.scholarship_applications, name='scholarship_applications'),
    path('scholarships/applications/me', scholarships.scholarship_my_applications,
         name='scholarship_my_applications'),
    path('scholarships/applications/<int:pk>', scholarships.scholarship_application_detail,
         name='scholarship_application_detail'),
    path('scholarships/applications/<int:pk>/approve', scholarships.scholarship_application_approve,
         name='scholarship_application_approve'),
    path('scholarships/applications/<int:pk>/reject', scholarships.scholarship_application_reject,
         name='scholarship_application_reject'),
    path('scholarships/<int:pk>/apply', scholarships.scholarship_apply, name='scholarship_apply'),

    # bursary
    path('bursary/reports', bursary.bursary_reports, name='bursary_reports'),
    path('bursary/reports/generate', bursary.bursary_generate_report, name='bursary_generate_report'),

    # results
    path('results', results.result_list, name='result_list'),
    path('results/publish', results.result_publish, name='result_publish'),
    path('results/transcript/me', results.my_transcript, name='my_transcript'),
    path('results/transcript/<int:student_id>', results.result_transcript, name='result_transcript'),
    path('results/summary/<int:student_id>', results.result_summary, name='result_summary'),
    path('results/<int:pk>', results.result_detail, name='result_detail'),
    path('results/<int:pk>/hod-approve', results.result_hod_approve, name='result_hod_approve'),
    path('results/<int:pk>/hod-reject', results.result_hod_reject, name='result_hod_reject'),
    path('results/<int:pk>/admin-approve', results.result_admin_approve, name='result_admin_approve'),

    # grade appeals
    path('appeals', appeals.appeal_list, name='appeal_list'),
    path('appeals/me', appeals.my_appeals, name='my_appeals'),
    path('appeals/<int:pk>', appeals.appeal_detail, name='appeal_detail'),
    path('appeals/<int:pk>/review', appeals.appeal_review, name='appeal_review'),

    # dashboards
    path('dashboard', dashboards.my_dashboard, name='my_dashboard'),
    path('dashboard/student', dashboards.student_dashboard, name='student_dashboard'),
    path('dashboard/lecturer', dashboards.lecturer_dashboard, name='lecturer_dashboard'),
    path('dashboard/hod', dashboards.hod_dashboard, name='hod_dashboard'),
    path('dashboard/bursary', dashboards.bursary_dashboard, name='bursary_dashboard'),
    path('dashboard/admin', dashboards.admin_dashboard, name='admin_dashboard'),
]
