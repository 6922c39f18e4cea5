"""
Django admin registrations for the portal models.
"""
from django.contrib import admin

from .models import (
    AcademicSession,
    Assignment,
    AttendanceRecord,
    AuditEvent,
    Clearance,
    Course,
    Department,
    Enrollment,
    GradeAppeal,
    Hostel,
    HostelApplication,
    Message,
    Notification,
    Payment,
    Quiz,
    QuizAttempt,
    Result,
    Scholarship,
    ScholarshipApplication,
    Submission,
    User,
)

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'role', 'student_id', 'department', 'level', 'is_active')
    list_filter = ('role', 'is_active', 'department')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'student_id')


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'faculty', 'hod')
    search_fields = ('code', 'name')


@admin.register(AcademicSession)
class AcademicSessionAdmin(admin.ModelAdmin):
    list_display = ('name', 'start_date', 'end_date', 'is_active')


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ('code', 'title', 'level', 'semester', 'lecturer', 'capacity', 'is_active')
    list_filter = ('level', 'semester', 'is_active')
    search_fields = ('code', 'title')


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ('student', 'course', 'session', 'status', 'enrolled_at')
    list_filter = ('status',)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('reference', 'student', 'type', 'amount', 'status', 'created_at')
    list_filter = ('status', 'type')
    search_fields = ('reference',)


@admin.register(Hostel)
class HostelAdmin(admin.ModelAdmin):
    list_display = ('name', 'gender', 'total_rooms', 'capacity', 'occupied', 'is_active')


@admin.register(HostelApplication)
class HostelApplicationAdmin(admin.ModelAdmin):
    list_display = ('student', 'session', 'status', 'hostel', 'room_number', 'created_at')
    list_filter = ('status',)


@admin.register(Quiz)
class QuizAdmin(admin.ModelAdmin):
    list_display = ('title', 'course', 'start_date', 'end_date', 'is_active')


@admin.register(QuizAttempt)
class QuizAttemptAdmin(admin.ModelAdmin):
    list_display = ('quiz', 'student', 'score', 'percentage', 'is_completed')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'sender', 'recipient', 'subject', 'is_read', 'created_at')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'type', 'title', 'is_read', 'created_at')
    list_filter = ('type', 'is_read')


@admin.register(Clearance)
class ClearanceAdmin(admin.ModelAdmin):
    list_display = ('student', 'academic_year', 'overall_status', 'completed_at')
    list_filter = ('overall_status',)


@admin.register(Result)
class ResultAdmin(admin.ModelAdmin):
    list_display = ('student', 'course', 'session', 'semester', 'total_score', 'grade', 'is_published')
    list_filter = ('is_published', 'approved_by_hod', 'approved_by_admin')


@admin.register(Scholarship)
class ScholarshipAdmin(admin.ModelAdmin):
    list_display = ('name', 'amount', 'available_slots', 'filled_slots', 'application_deadline', 'is_active')


@admin.register(ScholarshipApplication)
class ScholarshipApplicationAdmin(admin.ModelAdmin):
    list_display = ('scholarship', 'student', 'status', 'approved_amount', 'created_at')
    list_filter = ('status',)


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = ('course', 'date', 'topic', 'total_students', 'percentage')


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ('title', 'course', 'due_date', 'total_marks', 'allow_late_submission')


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ('assignment', 'student', 'submitted_at', 'is_late', 'grade')


@admin.register(GradeAppeal)
class GradeAppealAdmin(admin.ModelAdmin):
    list_display = ('student', 'course', 'status', 'created_at')
    list_filter = ('status',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
