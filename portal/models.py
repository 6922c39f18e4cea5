"""
Database models for the university portal backend.

The models mirror the resources exposed by the API: accounts and
departments, the academic calendar (sessions, courses, enrollments),
finance (payments, scholarships), accommodation (hostels and their
applications), assessment (quizzes, assignments, results and appeals),
class attendance, communication (messages, notifications) and the
end-of-programme clearance workflow.

Several resources keep small JSON documents on the row (hostel rooms,
clearance departments, quiz questions).  The services that mutate them
are responsible for keeping the derived counters consistent.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class Department(models.Model):
    """An academic department, optionally headed by an HOD account."""
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=20, unique=True)
    faculty = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    hod = models.ForeignKey(
        'User', null=True, blank=True, on_delete=models.SET_NULL, related_name='headed_departments'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


class User(AbstractUser):
    """Portal account.

    The role drives every authorization decision in the API.  Students
    carry a generated ``student_id`` (``ST/0001/2026``), a level and a
    gender, the latter being used for hostel allocation.
    """
    ROLE_STUDENT = 'student'
    ROLE_LECTURER = 'lecturer'
    ROLE_HOD = 'hod'
    ROLE_ADMIN = 'admin'
    ROLE_BURSARY = 'bursary'
    ROLE_CHOICES = [
        (ROLE_STUDENT, 'Student'),
        (ROLE_LECTURER, 'Lecturer'),
        (ROLE_HOD, 'Head of Department'),
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_BURSARY, 'Bursary'),
    ]
    GENDER_CHOICES = [('male', 'Male'), ('female', 'Female')]

    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_STUDENT, db_index=True)
    student_id = models.CharField(max_length=32, unique=True, null=True, blank=True)
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='members'
    )
    level = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.CharField(max_length=255, blank=True)
    avatar = models.CharField(max_length=512, blank=True)

    @property
    def full_name(self) -> str:
        return self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class AcademicSession(models.Model):
    name = models.CharField(max_length=20, unique=True, help_text="e.g. 2024/2025")
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=False)

    def __str__(self) -> str:
        return self.name


class Course(models.Model):
    SEMESTER_CHOICES = [('first', 'First'), ('second', 'Second')]

    code = models.CharField(max_length=20, unique=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    credits = models.PositiveIntegerField(default=3)
    level = models.PositiveIntegerField(default=100, db_index=True)
    semester = models.CharField(max_length=10, choices=SEMESTER_CHOICES, default='first')
    department = models.ForeignKey(Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='courses')
    lecturer = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='courses_taught')
    # [{day, startTime, endTime, venue}]
    schedule = models.JSONField(default=list, blank=True)
    capacity = models.PositiveIntegerField(default=100)
    session = models.ForeignKey(AcademicSession, null=True, blank=True, on_delete=models.SET_NULL, related_name='courses')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.code} {self.title}"


class Enrollment(models.Model):
    STATUS_CHOICES = [('active', 'Active'), ('dropped', 'Dropped'), ('completed', 'Completed')]

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='enrollments')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='enrollments')
    session = models.ForeignKey(AcademicSession, null=True, blank=True, on_delete=models.SET_NULL)
    semester = models.CharField(max_length=10, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)
    enrolled_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('student', 'course', 'session')]

    def __str__(self) -> str:
        return f"{self.student_id} -> {self.course_id} ({self.status})"


class Payment(models.Model):
    TYPE_CHOICES = [
        ('tuition', 'Tuition'),
        ('hostel', 'Hostel'),
        ('library', 'Library'),
        ('medical', 'Medical'),
        ('sports', 'Sports'),
        ('exam', 'Exam'),
        ('late_registration', 'Late registration'),
    ]
    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_VERIFIED = 'verified'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_VERIFIED, 'Verified'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reference = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    session = models.ForeignKey(AcademicSession, null=True, on_delete=models.SET_NULL, related_name='payments')
    semester = models.CharField(max_length=20, blank=True)
    payment_method = models.CharField(max_length=32, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='payments_verified'
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)
    gateway_response = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['student', 'type', 'session', 'semester']),
            models.Index(fields=['status', 'created_at']),
        ]

    def __str__(self) -> str:
        return f"{self.reference} {self.type} {self.status}"


class Hostel(models.Model):
    GENDER_CHOICES = [('male', 'Male'), ('female', 'Female'), ('mixed', 'Mixed')]

    name = models.CharField(max_length=255)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, db_index=True)
    total_rooms = models.PositiveIntegerField(default=0)
    capacity = models.PositiveIntegerField(default=0)
    occupied = models.PositiveIntegerField(default=0)
    # [{number, capacity, occupied, students: [userId, ...]}]
    rooms = models.JSONField(default=list, blank=True)
    facilities = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.occupied}/{self.capacity})"


class HostelApplication(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_ALLOCATED = 'allocated'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_ALLOCATED, 'Allocated'),
    ]

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='hostel_applications')
    session = models.ForeignKey(AcademicSession, on_delete=models.CASCADE, related_name='hostel_applications')
    hostel = models.ForeignKey(Hostel, null=True, blank=True, on_delete=models.SET_NULL, related_name='applications')
    room_number = models.CharField(max_length=20, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    roommate_preference = models.CharField(max_length=255, blank=True)
    special_requests = models.TextField(blank=True)
    processed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='hostel_applications_processed'
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)
    allocated_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('student', 'session')]

    def __str__(self) -> str:
        return f"HostelApplication({self.student_id}, {self.session_id}, {self.status})"


class Quiz(models.Model):
    QUESTION_TYPES = ('multiple_choice', 'true_false', 'short_answer')

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='quizzes')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    duration = models.PositiveIntegerField(help_text="Minutes")
    total_marks = models.PositiveIntegerField()
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    # [{question, type, options, correctAnswer, marks}]
    questions = models.JSONField(default=list)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='quizzes_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.title


class QuizAttempt(models.Model):
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='attempts')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='quiz_attempts')
    answers = models.JSONField(default=list, blank=True)
    score = models.FloatField(default=0)
    percentage = models.FloatField(default=0)
    started_at = models.DateTimeField(auto_now_add=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    is_completed = models.BooleanField(default=False)

    class Meta:
        unique_together = [('quiz', 'student')]

    def __str__(self) -> str:
        return f"Attempt({self.quiz_id}, {self.student_id})"


class Message(models.Model):
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name='messages_sent')
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='messages_received')
    subject = models.CharField(max_length=255)
    body = models.TextField()
    attachments = models.JSONField(default=list, blank=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    # id of the first message in the conversation, null for a root message
    thread_id = models.BigIntegerField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['recipient', 'is_read']),
            models.Index(fields=['sender', 'created_at']),
        ]

    def __str__(self) -> str:
        return f"msg {self.id} {self.sender_id}->{self.recipient_id}"


class Notification(models.Model):
    TYPE_CHOICES = [('info', 'Info'), ('success', 'Success'), ('warning', 'Warning'), ('error', 'Error')]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='info')
    title = models.CharField(max_length=255)
    message = models.TextField()
    link = models.CharField(max_length=255, blank=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['user', 'is_read', 'created_at'])]

    def __str__(self) -> str:
        return f"{self.type}:{self.title} -> {self.user_id}"


class Clearance(models.Model):
    STATUS_IN_PROGRESS = 'in-progress'
    STATUS_COMPLETED = 'completed'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='clearances')
    academic_year = models.CharField(max_length=20)
    semester = models.CharField(max_length=32, blank=True)
    # [{name, description, required, status, comment, approvedBy, approvedAt}]
    departments = models.JSONField(default=list)
    overall_status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_IN_PROGRESS, db_index=True)
    document_requests = models.JSONField(default=list, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('student', 'academic_year')]

    def __str__(self) -> str:
        return f"Clearance({self.student_id}, {self.academic_year}, {self.overall_status})"


class Result(models.Model):
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='results')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='results')
    session = models.ForeignKey(AcademicSession, on_delete=models.CASCADE, related_name='results')
    semester = models.CharField(max_length=10)
    ca_score = models.FloatField(default=0)
    exam_score = models.FloatField(default=0)
    total_score = models.FloatField(default=0)
    grade = models.CharField(max_length=1)
    grade_points = models.PositiveSmallIntegerField(default=0)
    entered_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='results_entered')

    approved_by_hod = models.BooleanField(default=False)
    hod_approved_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    hod_approved_at = models.DateTimeField(null=True, blank=True)
    hod_rejection_reason = models.CharField(max_length=255, blank=True)
    hod_rejected_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    hod_rejected_at = models.DateTimeField(null=True, blank=True)

    approved_by_admin = models.BooleanField(default=False)
    admin_approved_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    admin_approved_at = models.DateTimeField(null=True, blank=True)

    is_published = models.BooleanField(default=False, db_index=True)
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('student', 'course', 'session', 'semester')]

    def __str__(self) -> str:
        return f"Result({self.student_id}, {self.course_id}, {self.grade})"


class Scholarship(models.Model):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    # {minCGPA, levels: [..], departments: [code, ..]}
    eligibility_criteria = models.JSONField(default=dict, blank=True)
    available_slots = models.PositiveIntegerField(default=1)
    filled_slots = models.PositiveIntegerField(default=0)
    application_deadline = models.DateTimeField()
    academic_year = models.CharField(max_length=20, default='2024/2025')
    status = models.CharField(max_length=10, default='active')
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='scholarships_created')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class ScholarshipApplication(models.Model):
    STATUS_CHOICES = [('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')]

    scholarship = models.ForeignKey(Scholarship, on_delete=models.CASCADE, related_name='applications')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='scholarship_applications')
    reason = models.TextField()
    documents = models.JSONField(default=list, blank=True)
    financial_info = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    approved_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)
    reviewed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('scholarship', 'student')]

    def __str__(self) -> str:
        return f"ScholarshipApplication({self.scholarship_id}, {self.student_id}, {self.status})"


class AttendanceRecord(models.Model):
    """One class meeting of a course and who was there."""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='attendance_records')
    lecturer = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='attendance_recorded')
    date = models.DateTimeField(db_index=True)
    topic = models.CharField(max_length=255, blank=True)
    # lists of student ids
    attendees = models.JSONField(default=list, blank=True)
    absentees = models.JSONField(default=list, blank=True)
    late = models.JSONField(default=list, blank=True)
    total_students = models.PositiveIntegerField(default=0)
    percentage = models.FloatField(default=0)
    academic_year = models.CharField(max_length=20, default='2024/2025')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['course', 'date'])]

    def __str__(self) -> str:
        return f"Attendance({self.course_id}, {self.date:%Y-%m-%d})"


class Assignment(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='assignments')
    title = models.CharField(max_length=255)
    description = models.TextField()
    due_date = models.DateTimeField(db_index=True)
    total_marks = models.PositiveIntegerField(default=100)
    # [{name, url, size}]
    attachments = models.JSONField(default=list, blank=True)
    allow_late_submission = models.BooleanField(default=False)
    late_penalty = models.PositiveSmallIntegerField(default=0, help_text="Percentage deducted from late grades")
    created_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='assignments_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.title


class Submission(models.Model):
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name='submissions')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='submissions')
    # [{name, url, size}]
    files = models.JSONField(default=list)
    comment = models.TextField(blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)
    is_late = models.BooleanField(default=False)
    grade = models.FloatField(null=True, blank=True)
    feedback = models.TextField(blank=True)
    graded_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    graded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = [('assignment', 'student')]

    def __str__(self) -> str:
        return f"Submission({self.assignment_id}, {self.student_id})"


class GradeAppeal(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_IN_REVIEW = 'in-review'
    STATUS_RESOLVED = 'resolved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_REVIEW, 'In review'),
        (STATUS_RESOLVED, 'Resolved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='grade_appeals')
    result = models.ForeignKey(Result, on_delete=models.CASCADE, related_name='appeals')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='grade_appeals')
    reason = models.TextField()
    preferred_resolution = models.TextField(blank=True)
    attachments = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    resolution_note = models.TextField(blank=True)
    resolved_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('student', 'result')]

    def __str__(self) -> str:
        return f"GradeAppeal({self.student_id}, {self.result_id}, {self.status})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['object_type', 'object_id', 'created_at']),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
