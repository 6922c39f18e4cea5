"""
Populate the database with a small but complete data set for local
development: departments, sessions, staff of every role, students,
courses with enrollments and assignments, hostels and scholarships.
"""
import random
from datetime import date, timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from portal.models import AcademicSession, Assignment, Course, Department, Enrollment, Hostel, Scholarship, User
from portal.services.hostels import normalize_rooms
from portal.services.users import generate_student_id

DEPARTMENTS = [
    ("Computer Science", "CSC", "Science"),
    ("Mathematics", "MTH", "Science"),
    ("Economics", "ECO", "Social Sciences"),
    ("Accounting", "ACC", "Management Sciences"),
]

COURSES = [
    ("CSC101", "Introduction to Computing", "CSC", 100, "first"),
    ("CSC201", "Data Structures", "CSC", 200, "first"),
    ("CSC301", "Operating Systems", "CSC", 300, "second"),
    ("MTH101", "Elementary Mathematics I", "MTH", 100, "first"),
    ("MTH202", "Linear Algebra", "MTH", 200, "second"),
    ("ECO101", "Principles of Economics", "ECO", 100, "first"),
    ("ACC201", "Financial Accounting", "ACC", 200, "second"),
]

DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


class Command(BaseCommand):
    help = "Populate the database with development data"

    def add_arguments(self, parser):
        parser.add_argument("--students", type=int, default=20)
        parser.add_argument("--password", default="Password123!")
        parser.add_argument("--seed", type=int, default=42)

    @transaction.atomic
    def handle(self, *args, **options):
        random.seed(options["seed"])
        password = make_password(options["password"])

        session = self.create_sessions()
        departments = self.create_departments()
        staff = self.create_staff(departments, password)
        students = self.create_students(departments, password, options["students"])
        courses = self.create_courses(departments, staff["lecturer"], session)
        self.create_enrollments(students, courses, session)
        self.create_assignments(courses, staff["lecturer"])
        self.create_hostels()
        self.create_scholarships(staff["bursary"])

        self.stdout.write(self.style.SUCCESS("Development data created."))

    def create_sessions(self):
        current = None
        for name, active in (("2023/2024", False), (settings.CURRENT_ACADEMIC_YEAR, True)):
            start_year = int(name.split("/")[0])
            session, _ = AcademicSession.objects.update_or_create(
                name=name,
                defaults={
                    "start_date": date(start_year, 9, 1),
                    "end_date": date(start_year + 1, 7, 31),
                    "is_active": active,
                },
            )
            if active:
                current = session
            self.stdout.write(f"session: {session.name}")
        return current

    def create_departments(self):
        departments = {}
        for name, code, faculty in DEPARTMENTS:
            dept, _ = Department.objects.get_or_create(code=code, defaults={"name": name, "faculty": faculty})
            departments[code] = dept
            self.stdout.write(f"department: {dept}")
        return departments

    def _user(self, username, role, password, **extra):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@university.test", "role": role, "password": password, **extra},
        )
        return user

    def create_staff(self, departments, password):
        csc = departments["CSC"]
        staff = {
            "admin": self._user("admin", "admin", password, first_name="Ada", last_name="Admin", is_staff=True),
            "bursary": self._user("bursar", "bursary", password, first_name="Bola", last_name="Bursar"),
            "hod": self._user("hod.csc", "hod", password, first_name="Hassan", last_name="Okoro", department=csc),
            "lecturer": self._user("lecturer.csc", "lecturer", password, first_name="Ngozi", last_name="Eze",
                                   department=csc),
        }
        if csc.hod_id is None:
            csc.hod = staff["hod"]
            csc.save(update_fields=["hod"])
        return staff

    def create_students(self, departments, password, count):
        students = []
        codes = list(departments)
        for i in range(1, count + 1):
            username = f"student{i:03d}"
            user = User.objects.filter(username=username).first()
            if user is None:
                user = self._user(
                    username, "student", password,
                    first_name=f"Student{i}",
                    last_name=random.choice(["Adeyemi", "Bello", "Chukwu", "Danjuma", "Effiong"]),
                    department=departments[codes[i % len(codes)]],
                    level=random.choice([100, 200, 300, 400]),
                    gender="male" if i % 2 else "female",
                    student_id=generate_student_id(),
                )
            students.append(user)
        self.stdout.write(f"students: {len(students)}")
        return students

    def create_courses(self, departments, lecturer, session):
        courses = []
        for code, title, dept_code, level, semester in COURSES:
            day = random.choice(DAYS)
            hour = random.choice([8, 10, 12, 14])
            course, _ = Course.objects.get_or_create(
                code=code,
                defaults={
                    "title": title,
                    "level": level,
                    "semester": semester,
                    "department": departments[dept_code],
                    "lecturer": lecturer,
                    "session": session,
                    "capacity": 60,
                    "schedule": [{
                        "day": day,
                        "startTime": f"{hour:02d}:00",
                        "endTime": f"{hour + 2:02d}:00",
                        "venue": f"LT{random.randint(1, 5)}",
                    }],
                },
            )
            courses.append(course)
        self.stdout.write(f"courses: {len(courses)}")
        return courses

    def create_enrollments(self, students, courses, session):
        created = 0
        for student in students:
            for course in courses:
                if course.level != student.level and random.random() > 0.2:
                    continue
                _, was_created = Enrollment.objects.get_or_create(
                    student=student, course=course, session=session,
                    defaults={"semester": course.semester},
                )
                created += int(was_created)
        self.stdout.write(f"enrollments created: {created}")

    def create_assignments(self, courses, lecturer):
        due = timezone.now() + timedelta(days=14)
        for course in courses:
            Assignment.objects.get_or_create(
                course=course, title=f"{course.code} Assignment 1",
                defaults={
                    "description": f"First take-home assignment for {course.title}.",
                    "due_date": due,
                    "total_marks": 20,
                    "allow_late_submission": True,
                    "late_penalty": 10,
                    "created_by": lecturer,
                },
            )
        self.stdout.write(f"assignments: {len(courses)}")

    def create_hostels(self):
        for name, gender, prefix in (("Queen Amina Hall", "female", "Q"), ("King Jaja Hall", "male", "K"),
                                     ("Postgraduate Lodge", "mixed", "P")):
            if Hostel.objects.filter(name=name).exists():
                continue
            rooms = normalize_rooms([{"number": f"{prefix}{n:03d}", "capacity": 4} for n in range(101, 111)])
            Hostel.objects.create(
                name=name, gender=gender, rooms=rooms, total_rooms=len(rooms),
                capacity=sum(r["capacity"] for r in rooms), occupied=0,
                facilities=["Water", "Electricity", "Wi-Fi"],
            )
            self.stdout.write(f"hostel: {name}")

    def create_scholarships(self, bursar):
        deadline = timezone.now() + timedelta(days=60)
        for name, amount, criteria, slots in (
            ("Vice-Chancellor Merit Award", Decimal("250000"), {"minCGPA": 4.5}, 5),
            ("Science Faculty Bursary", Decimal("100000"), {"departments": ["CSC", "MTH"], "levels": [200, 300]}, 10),
        ):
            Scholarship.objects.get_or_create(
                name=name,
                defaults={
                    "amount": amount,
                    "eligibility_criteria": criteria,
                    "available_slots": slots,
                    "application_deadline": deadline,
                    "academic_year": settings.CURRENT_ACADEMIC_YEAR,
                    "created_by": bursar,
                },
            )
            self.stdout.write(f"scholarship: {name}")
