from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from ..models import Assignment, Notification, Submission
from ..services.assignments import apply_late_penalty
from .utils import PortalTestCase

FILES = [{"name": "answer.pdf", "url": "https://files.uni.test/answer.pdf", "size": 2048}]


class AssignmentAPITests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.course = self.create_course()
        self.enroll(self.student, self.course)
        self.assignment = Assignment.objects.create(
            course=self.course, title="Stacks", description="Implement a stack",
            due_date=timezone.now() + timedelta(days=3), total_marks=20, created_by=self.lecturer,
        )

    def submit(self, user=None, assignment=None, files=FILES):
        return self.authenticate(user or self.student).post(
            reverse("assignment_submit", args=[(assignment or self.assignment).id]),
            {"files": files, "comment": "Done"}, format="json",
        )

    def test_lecturer_creates_assignment_and_students_are_notified(self):
        response = self.authenticate(self.lecturer).post(reverse("assignment_list"), {
            "courseId": self.course.id,
            "title": "Queues",
            "description": "Implement a queue",
            "dueDate": (timezone.now() + timedelta(days=7)).isoformat(),
            "totalMarks": 30,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["latePenalty"], 0)
        self.assertTrue(Notification.objects.filter(user=self.student, title="New Assignment Posted").exists())
        self.assertFalse(Notification.objects.filter(user=self.other_student).exists())

    def test_other_lecturer_cannot_create(self):
        other = self.create_user("lect6", "lecturer")
        response = self.authenticate(other).post(reverse("assignment_list"), {
            "courseId": self.course.id, "title": "X", "description": "Y",
            "dueDate": timezone.now().isoformat(),
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_students_only_list_enrolled_courses(self):
        other_course = self.create_course(code="CSC305", title="Compilers")
        Assignment.objects.create(course=other_course, title="Parser", description="LL(1)",
                                  due_date=timezone.now() + timedelta(days=1), created_by=self.lecturer)
        response = self.authenticate(self.student).get(reverse("assignment_list"))
        self.assertEqual([a["title"] for a in response.data["data"]], ["Stacks"])
        self.assertEqual(self.authenticate(self.admin).get(reverse("assignment_list")).data["pagination"]["total"],
                         2)

    def test_submit_once(self):
        response = self.submit()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data["data"]["isLate"])
        again = self.submit()
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["error"]["message"], "You have already submitted this assignment")

    def test_unenrolled_student_cannot_submit(self):
        self.assertEqual(self.submit(user=self.other_student).status_code, status.HTTP_403_FORBIDDEN)

    def test_submission_needs_a_file(self):
        self.assertEqual(self.submit(files=[]).status_code, status.HTTP_400_BAD_REQUEST)

    def test_late_submission_refused_unless_allowed(self):
        self.assignment.due_date = timezone.now() - timedelta(hours=1)
        self.assignment.save()
        response = self.submit()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Assignment submission deadline has passed")

        self.assignment.allow_late_submission = True
        self.assignment.save()
        response = self.submit()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["data"]["isLate"])

    def test_grading_applies_late_penalty_and_notifies(self):
        self.assignment.due_date = timezone.now() - timedelta(hours=1)
        self.assignment.allow_late_submission = True
        self.assignment.late_penalty = 10
        self.assignment.save()
        submission_id = self.submit().data["data"]["id"]
        response = self.authenticate(self.lecturer).post(
            reverse("assignment_grade", args=[self.assignment.id, submission_id]),
            {"grade": 20, "feedback": "Good work"}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["grade"], 18.0)
        note = Notification.objects.get(user=self.student, title="Assignment Graded")
        self.assertIn("Score: 18/20", note.message)

    def test_grade_is_bounded_by_total_marks(self):
        submission_id = self.submit().data["data"]["id"]
        response = self.authenticate(self.lecturer).post(
            reverse("assignment_grade", args=[self.assignment.id, submission_id]), {"grade": 25}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Grade must be between 0 and 20")

    def test_submission_must_belong_to_assignment(self):
        submission_id = self.submit().data["data"]["id"]
        other = Assignment.objects.create(course=self.course, title="Heaps", description="Heapify",
                                          due_date=timezone.now() + timedelta(days=2), created_by=self.lecturer)
        response = self.authenticate(self.lecturer).post(
            reverse("assignment_grade", args=[other.id, submission_id]), {"grade": 5}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_submissions_list_and_my_submission(self):
        my = self.authenticate(self.student).get(reverse("assignment_my_submission", args=[self.assignment.id]))
        self.assertEqual(my.status_code, status.HTTP_404_NOT_FOUND)
        self.submit()
        listing = self.authenticate(self.lecturer).get(reverse("assignment_submissions", args=[self.assignment.id]))
        self.assertEqual(len(listing.data["data"]), 1)
        my = self.authenticate(self.student).get(reverse("assignment_my_submission", args=[self.assignment.id]))
        self.assertEqual(my.data["data"]["files"], FILES)

    def test_only_creator_or_admin_updates(self):
        other = self.create_user("lect4", "lecturer")
        url = reverse("assignment_detail", args=[self.assignment.id])
        self.assertEqual(self.authenticate(other).patch(url, {"title": "Hijack"}, format="json").status_code,
                         status.HTTP_403_FORBIDDEN)
        response = self.authenticate(self.admin).patch(url, {"latePenalty": 25}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["latePenalty"], 25)
        self.assertEqual(self.authenticate(self.lecturer).delete(url).status_code, status.HTTP_200_OK)
        self.assertFalse(Submission.objects.exists())


def test_late_penalty_is_a_percentage():
    assert apply_late_penalty(20, 10) == 18.0
    assert apply_late_penalty(15, 0) == 15.0
    assert apply_late_penalty(7, 100) == 0.0
