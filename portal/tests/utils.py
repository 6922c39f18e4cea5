"""Shared fixtures for the API test cases."""
from datetime import date

from rest_framework.test import APIClient, APITestCase

from ..models import AcademicSession, Course, Department, Enrollment, User


class PortalTestCase(APITestCase):
    def setUp(self) -> None:
        self.dept = Department.objects.create(name="Computer Science", code="CSC", faculty="Science")
        self.session = AcademicSession.objects.create(
            name="2024/2025", start_date=date(2024, 9, 1), end_date=date(2025, 7, 31), is_active=True,
        )
        self.admin = self.create_user("admin1", "admin")
        self.bursar = self.create_user("bursar1", "bursary")
        self.hod = self.create_user("hod1", "hod", department=self.dept)
        self.lecturer = self.create_user("lect1", "lecturer", department=self.dept)
        self.student = self.create_user(
            "stud1", "student", first_name="Ada", last_name="Obi", department=self.dept,
            level=200, gender="female", student_id="ST/0001/2024",
        )
        self.other_student = self.create_user(
            "stud2", "student", first_name="Bayo", last_name="Ade", department=self.dept,
            level=200, gender="male", student_id="ST/0002/2024",
        )

    @staticmethod
    def create_user(username: str, role: str, **extra) -> User:
        return User.objects.create_user(
            username=username, password="P@ssw0rd1", role=role, email=f"{username}@uni.test", **extra,
        )

    def authenticate(self, user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def create_course(self, code: str = "CSC201", **extra) -> Course:
        defaults = {
            "title": "Data Structures",
            "level": 200,
            "semester": "first",
            "department": self.dept,
            "lecturer": self.lecturer,
            "session": self.session,
            "capacity": 50,
        }
        defaults.update(extra)
        return Course.objects.create(code=code, **defaults)

    def enroll(self, student: User, course: Course) -> Enrollment:
        return Enrollment.objects.create(student=student, course=course, session=course.session,
                                         semester=course.semester)
