from django.urls import reverse
from rest_framework import status

from ..models import AcademicSession, Notification, Result
from ..services.grading import calculate_gpa, calculate_grade
from .utils import PortalTestCase


class ResultWorkflowTests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.course = self.create_course(credits=3)
        self.enroll(self.student, self.course)

    def enter(self, ca=30, exam=45, student=None, course=None, semester="first"):
        return self.authenticate(self.lecturer).post(reverse("result_list"), {
            "studentId": (student or self.student).id,
            "courseId": (course or self.course).id,
            "sessionId": self.session.id,
            "semester": semester,
            "caScore": ca,
            "examScore": exam,
        }, format="json")

    def approve_fully(self, result_id):
        self.authenticate(self.hod).post(reverse("result_hod_approve", args=[result_id]))
        self.authenticate(self.admin).post(reverse("result_admin_approve", args=[result_id]))

    def test_entry_computes_grade(self):
        response = self.enter(ca=30, exam=45)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data["data"]
        self.assertEqual(data["totalScore"], 75)
        self.assertEqual(data["grade"], "A")
        self.assertEqual(data["gradePoints"], 5)

    def test_scores_are_bounded(self):
        self.assertEqual(self.enter(ca=41, exam=10).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.enter(ca=10, exam=61).status_code, status.HTTP_400_BAD_REQUEST)

    def test_student_must_be_enrolled_and_result_unique(self):
        unenrolled = self.enter(student=self.other_student)
        self.assertEqual(unenrolled.status_code, status.HTTP_400_BAD_REQUEST)
        self.enter()
        self.assertEqual(self.enter().status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_course_lecturer_enters_results(self):
        other = self.create_user("lect5", "lecturer")
        response = self.authenticate(other).post(reverse("result_list"), {
            "studentId": self.student.id, "courseId": self.course.id, "sessionId": self.session.id,
            "semester": "first", "caScore": 10, "examScore": 10,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_approval_requires_hod_first(self):
        result_id = self.enter().data["data"]["id"]
        response = self.authenticate(self.admin).post(reverse("result_admin_approve", args=[result_id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Result must be approved by HOD first")

    def test_hod_reject_requires_reason_and_correction_clears_it(self):
        result_id = self.enter().data["data"]["id"]
        hod = self.authenticate(self.hod)
        self.assertEqual(hod.post(reverse("result_hod_reject", args=[result_id]), {}, format="json").status_code,
                         status.HTTP_400_BAD_REQUEST)
        rejected = hod.post(reverse("result_hod_reject", args=[result_id]), {"reason": "Exam total wrong"},
                            format="json")
        self.assertEqual(rejected.data["data"]["hodRejectionReason"], "Exam total wrong")

        fixed = self.authenticate(self.lecturer).patch(reverse("result_detail", args=[result_id]),
                                                       {"examScore": 20}, format="json")
        self.assertEqual(fixed.status_code, status.HTTP_200_OK)
        self.assertEqual(fixed.data["data"]["totalScore"], 50)
        self.assertEqual(fixed.data["data"]["grade"], "C")
        self.assertIsNone(fixed.data["data"]["hodRejectionReason"])

    def test_approved_result_is_locked(self):
        result_id = self.enter().data["data"]["id"]
        self.authenticate(self.hod).post(reverse("result_hod_approve", args=[result_id]))
        response = self.authenticate(self.lecturer).patch(reverse("result_detail", args=[result_id]),
                                                          {"caScore": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_publish_makes_results_visible_to_student(self):
        result_id = self.enter().data["data"]["id"]
        student = self.authenticate(self.student)
        self.assertEqual(student.get(reverse("result_list")).data["pagination"]["total"], 0)
        self.assertEqual(student.get(reverse("result_detail", args=[result_id])).status_code,
                         status.HTTP_403_FORBIDDEN)

        self.approve_fully(result_id)
        published = self.authenticate(self.admin).post(reverse("result_publish"),
                                                       {"sessionId": self.session.id, "semester": "first"},
                                                       format="json")
        self.assertEqual(published.data["data"]["modifiedCount"], 1)
        self.assertTrue(Notification.objects.filter(user=self.student, title="Results Published").exists())
        self.assertEqual(student.get(reverse("result_list")).data["pagination"]["total"], 1)

        denied = self.authenticate(self.admin).delete(reverse("result_detail", args=[result_id]))
        self.assertEqual(denied.status_code, status.HTTP_400_BAD_REQUEST)

    def test_transcript_groups_semesters_and_computes_cgpa(self):
        second_course = self.create_course("CSC202", title="Algorithms", credits=2, semester="second")
        self.enroll(self.student, second_course)
        first_id = self.enter(ca=30, exam=45).data["data"]["id"]
        second_id = self.enter(ca=20, exam=30, course=second_course, semester="second").data["data"]["id"]
        for result_id in (first_id, second_id):
            self.approve_fully(result_id)
        Result.objects.update(is_published=True)

        response = self.authenticate(self.student).get(reverse("my_transcript"))
        data = response.data["data"]
        self.assertEqual([s["semester"] for s in data["semesters"]], ["first", "second"])
        self.assertEqual(data["semesters"][0]["gpa"], 5.0)
        self.assertEqual(data["semesters"][1]["gpa"], 3.0)
        # (5 * 3 + 3 * 2) / 5
        self.assertEqual(data["cgpa"], 4.2)
        self.assertEqual(data["totalCredits"], 5)

        other = self.authenticate(self.other_student).get(reverse("result_transcript", args=[self.student.id]))
        self.assertEqual(other.status_code, status.HTTP_403_FORBIDDEN)

    def test_summary_grade_distribution(self):
        result_id = self.enter(ca=20, exam=25).data["data"]["id"]
        Result.objects.filter(pk=result_id).update(is_published=True)
        response = self.authenticate(self.lecturer).get(reverse("result_summary", args=[self.student.id]))
        data = response.data["data"]
        self.assertEqual(data["gradeDistribution"]["D"], 1)
        self.assertEqual(data["gradeDistribution"]["A"], 0)
        self.assertEqual(data["gpa"], 2.0)

    def test_unknown_session_is_404(self):
        response = self.authenticate(self.lecturer).post(reverse("result_list"), {
            "studentId": self.student.id, "courseId": self.course.id,
            "sessionId": AcademicSession.objects.count() + 100,
            "semester": "first", "caScore": 10, "examScore": 10,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


def test_grade_boundaries():
    assert calculate_grade(70) == "A"
    assert calculate_grade(69.5) == "B"
    assert calculate_grade(50) == "C"
    assert calculate_grade(45) == "D"
    assert calculate_grade(40) == "E"
    assert calculate_grade(39.99) == "F"


def test_gpa_weights_by_credits():
    assert calculate_gpa([(5, 3), (3, 2)]) == 4.2
    assert calculate_gpa([]) == 0.0
