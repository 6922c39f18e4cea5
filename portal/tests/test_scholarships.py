from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from ..models import Notification, Result, Scholarship, ScholarshipApplication
from .utils import PortalTestCase


class ScholarshipAPITests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        deadline = timezone.now() + timedelta(days=30)
        self.open_award = Scholarship.objects.create(
            name="Faculty Bursary", amount=Decimal("100000"), available_slots=1,
            eligibility_criteria={"levels": [200], "departments": ["CSC"]},
            application_deadline=deadline, created_by=self.bursar,
        )
        self.merit_award = Scholarship.objects.create(
            name="VC Merit", amount=Decimal("250000"), available_slots=3,
            eligibility_criteria={"minCGPA": 4.5}, application_deadline=deadline, created_by=self.bursar,
        )

    def publish_result(self, student, grade="A", points=5):
        course = self.create_course(f"C{student.id}{grade}")
        Result.objects.create(student=student, course=course, session=self.session, semester="first",
                              ca_score=35, exam_score=40, total_score=75, grade=grade, grade_points=points,
                              approved_by_hod=True, approved_by_admin=True, is_published=True)

    def test_bursary_creates_scholarship(self):
        response = self.authenticate(self.bursar).post(reverse("scholarship_list"), {
            "name": "Women in Tech", "amount": "75000", "availableSlots": 2,
            "applicationDeadline": (timezone.now() + timedelta(days=10)).isoformat(),
            "eligibilityCriteria": {"levels": [100, 200]},
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["remainingSlots"], 2)

    def test_available_filters_by_eligibility(self):
        response = self.authenticate(self.student).get(reverse("scholarship_available"))
        names = [s["name"] for s in response.data["data"]["scholarships"]]
        self.assertEqual(names, ["Faculty Bursary"])
        self.assertEqual(response.data["data"]["studentCGPA"], 0.0)

        self.publish_result(self.student)
        response = self.authenticate(self.student).get(reverse("scholarship_available"))
        names = {s["name"] for s in response.data["data"]["scholarships"]}
        self.assertEqual(names, {"Faculty Bursary", "VC Merit"})

    def test_apply_requires_reason_and_is_once_only(self):
        client = self.authenticate(self.student)
        missing = client.post(reverse("scholarship_apply", args=[self.open_award.id]), {}, format="json")
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)

        ok = client.post(reverse("scholarship_apply", args=[self.open_award.id]), {"reason": "Need support"},
                         format="json")
        self.assertEqual(ok.status_code, status.HTTP_201_CREATED)
        again = client.post(reverse("scholarship_apply", args=[self.open_award.id]), {"reason": "Again"},
                            format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

    def test_apply_after_deadline_fails(self):
        self.open_award.application_deadline = timezone.now() - timedelta(days=1)
        self.open_award.save()
        response = self.authenticate(self.student).post(reverse("scholarship_apply", args=[self.open_award.id]),
                                                        {"reason": "Late"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Application deadline has passed")

    def test_approve_fills_slot_and_blocks_when_full(self):
        first = ScholarshipApplication.objects.create(scholarship=self.open_award, student=self.student, reason="a")
        second = ScholarshipApplication.objects.create(scholarship=self.open_award, student=self.other_student,
                                                       reason="b")
        client = self.authenticate(self.bursar)
        response = client.post(reverse("scholarship_application_approve", args=[first.id]), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["approvedAmount"], 100000.0)
        self.open_award.refresh_from_db()
        self.assertEqual(self.open_award.filled_slots, 1)
        self.assertTrue(Notification.objects.filter(user=self.student, title="Scholarship Approved").exists())

        full = client.post(reverse("scholarship_application_approve", args=[second.id]), {}, format="json")
        self.assertEqual(full.status_code, status.HTTP_400_BAD_REQUEST)

        reviewed = client.post(reverse("scholarship_application_approve", args=[first.id]), {}, format="json")
        self.assertEqual(reviewed.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reject_includes_reason_in_notification(self):
        app = ScholarshipApplication.objects.create(scholarship=self.merit_award, student=self.student, reason="a")
        response = self.authenticate(self.admin).post(reverse("scholarship_application_reject", args=[app.id]),
                                                      {"reason": "CGPA below threshold"}, format="json")
        self.assertEqual(response.data["data"]["status"], "rejected")
        notification = Notification.objects.get(user=self.student, title="Scholarship Application Update")
        self.assertIn("CGPA below threshold", notification.message)

    def test_application_detail_includes_cgpa(self):
        self.publish_result(self.student, grade="B", points=4)
        app = ScholarshipApplication.objects.create(scholarship=self.open_award, student=self.student, reason="a")
        response = self.authenticate(self.lecturer).get(reverse("scholarship_application_detail", args=[app.id]))
        self.assertEqual(response.data["data"]["studentCGPA"], 4.0)

    def test_students_cannot_review(self):
        app = ScholarshipApplication.objects.create(scholarship=self.open_award, student=self.student, reason="a")
        response = self.authenticate(self.student).post(reverse("scholarship_application_approve", args=[app.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
