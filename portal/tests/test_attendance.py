from django.urls import reverse
from rest_framework import status

from ..models import AttendanceRecord, Notification
from ..services.attendance import attendance_status, percentage
from .utils import PortalTestCase


class AttendanceAPITests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.course = self.create_course()
        self.enroll(self.student, self.course)
        self.enroll(self.other_student, self.course)

    def record(self, user=None, **overrides):
        payload = {
            "courseId": self.course.id,
            "topic": "Linked lists",
            "attendees": [self.student.id],
            "absentees": [self.other_student.id],
        }
        payload.update(overrides)
        return self.authenticate(user or self.lecturer).post(reverse("attendance_list"), payload, format="json")

    def test_lecturer_records_attendance_and_absentees_are_warned(self):
        response = self.record()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data["data"]
        self.assertEqual(data["totalStudents"], 2)
        self.assertEqual(data["percentage"], 50.0)
        alert = Notification.objects.get(user=self.other_student, title="Attendance Alert")
        self.assertEqual(alert.type, "warning")
        self.assertIn("CSC201 - Data Structures", alert.message)
        self.assertEqual(alert.link, f"/courses/{self.course.id}/attendance")
        self.assertFalse(Notification.objects.filter(user=self.student, title="Attendance Alert").exists())

    def test_other_lecturer_cannot_record(self):
        other = self.create_user("lect7", "lecturer")
        self.assertEqual(self.record(user=other).status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_course_is_404(self):
        self.assertEqual(self.record(courseId=9999).status_code, status.HTTP_404_NOT_FOUND)

    def test_student_marked_twice_is_rejected(self):
        response = self.record(late=[self.student.id])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "A student can only be marked once per class")

    def test_unenrolled_student_cannot_be_marked(self):
        stranger = self.create_user("stud9", "student")
        response = self.record(attendees=[stranger.id], absentees=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_students_cannot_record(self):
        self.assertEqual(self.record(user=self.student).status_code, status.HTTP_403_FORBIDDEN)

    def test_student_summary_counts_classes(self):
        self.record()
        self.record(attendees=[], absentees=[], late=[self.student.id])
        self.record(attendees=[], absentees=[self.student.id, self.other_student.id])
        response = self.authenticate(self.student).get(reverse("my_attendance"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        [summary] = response.data["data"]["courses"]
        self.assertEqual(summary["totalClasses"], 3)
        self.assertEqual(summary["attended"], 1)
        self.assertEqual(summary["late"], 1)
        self.assertEqual(summary["absent"], 1)
        self.assertEqual(summary["percentage"], 33.3)
        self.assertEqual(summary["status"], "Critical")

    def test_update_recomputes_percentage(self):
        record_id = self.record().data["data"]["id"]
        response = self.authenticate(self.lecturer).patch(reverse("attendance_detail", args=[record_id]), {
            "attendees": [self.student.id, self.other_student.id], "absentees": [],
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["percentage"], 100.0)

    def test_only_recording_lecturer_manages_record(self):
        record_id = self.record().data["data"]["id"]
        other = self.create_user("lect8", "lecturer")
        client = self.authenticate(other)
        self.assertEqual(client.delete(reverse("attendance_detail", args=[record_id])).status_code,
                         status.HTTP_403_FORBIDDEN)
        response = self.authenticate(self.lecturer).delete(reverse("attendance_detail", args=[record_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(AttendanceRecord.objects.filter(pk=record_id).exists())

    def test_history_and_overview(self):
        self.record()
        self.record(attendees=[self.student.id, self.other_student.id], absentees=[])
        client = self.authenticate(self.lecturer)
        history = client.get(reverse("attendance_list"), {"course": self.course.id})
        self.assertEqual(history.data["pagination"]["total"], 2)
        overview = client.get(reverse("attendance_overview")).data["data"]
        [stats] = overview["courseStats"]
        self.assertEqual(stats["totalRecords"], 2)
        self.assertEqual(stats["averageAttendance"], 75.0)
        self.assertEqual(len(overview["recentRecords"]), 2)


def test_attendance_status_thresholds():
    assert attendance_status(80) == "Good"
    assert attendance_status(75) == "Good"
    assert attendance_status(74.9) == "Warning"
    assert attendance_status(59.9) == "Critical"


def test_percentage_of_empty_class_is_zero():
    assert percentage(3, 0) == 0.0
    assert percentage(2, 3) == 66.7
