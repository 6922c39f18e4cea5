from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from ..models import Notification, Quiz, QuizAttempt
from ..services.quizzes import grade_answers
from .utils import PortalTestCase

QUESTIONS = [
    {"question": "2 + 2?", "type": "multiple_choice", "options": ["3", "4", "5"], "correctAnswer": "4", "marks": 4},
    {"question": "Python is compiled to bytecode", "type": "true_false", "options": [], "correctAnswer": "true",
     "marks": 2},
    {"question": "Capital of Nigeria", "type": "short_answer", "options": [], "correctAnswer": "Abuja", "marks": 4},
]


class QuizAPITests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.course = self.create_course()
        self.enroll(self.student, self.course)
        now = timezone.now()
        self.quiz = Quiz.objects.create(
            course=self.course, title="Week 1", duration=30, total_marks=10,
            start_date=now - timedelta(hours=1), end_date=now + timedelta(days=1),
            questions=QUESTIONS, created_by=self.lecturer,
        )

    def quiz_payload(self, **overrides):
        now = timezone.now()
        payload = {
            "courseId": self.course.id,
            "title": "Week 2",
            "duration": 20,
            "totalMarks": 10,
            "startDate": now.isoformat(),
            "endDate": (now + timedelta(days=2)).isoformat(),
            "questions": QUESTIONS,
        }
        payload.update(overrides)
        return payload

    def test_lecturer_creates_quiz_and_students_are_notified(self):
        response = self.authenticate(self.lecturer).post(reverse("quiz_list"), self.quiz_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Notification.objects.filter(user=self.student, title="New Quiz Available").exists())

    def test_total_marks_must_match_questions(self):
        response = self.authenticate(self.lecturer).post(reverse("quiz_list"), self.quiz_payload(totalMarks=12),
                                                         format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Total marks (12) must match sum of question marks (10)")

    def test_end_before_start_is_rejected(self):
        now = timezone.now()
        response = self.authenticate(self.lecturer).post(reverse("quiz_list"), self.quiz_payload(
            startDate=now.isoformat(), endDate=(now - timedelta(hours=1)).isoformat(),
        ), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_lecturer_cannot_create_for_course(self):
        other = self.create_user("lect9", "lecturer")
        response = self.authenticate(other).post(reverse("quiz_list"), self.quiz_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_student_view_hides_answers(self):
        response = self.authenticate(self.student).get(reverse("quiz_detail", args=[self.quiz.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        for question in response.data["data"]["questions"]:
            self.assertNotIn("correctAnswer", question)

    def test_unenrolled_student_cannot_start(self):
        response = self.authenticate(self.other_student).post(reverse("quiz_start", args=[self.quiz.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_quiz_window_is_enforced(self):
        self.quiz.start_date = timezone.now() + timedelta(hours=2)
        self.quiz.end_date = timezone.now() + timedelta(hours=3)
        self.quiz.save()
        response = self.authenticate(self.student).post(reverse("quiz_start", args=[self.quiz.id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Quiz has not started yet")

    def test_start_submit_and_grade(self):
        client = self.authenticate(self.student)
        started = client.post(reverse("quiz_start", args=[self.quiz.id]))
        self.assertEqual(started.status_code, status.HTTP_201_CREATED)
        self.assertNotIn("correctAnswer", started.data["data"]["quiz"]["questions"][0])

        second = client.post(reverse("quiz_start", args=[self.quiz.id]))
        self.assertEqual(second.status_code, status.HTTP_400_BAD_REQUEST)

        response = client.post(reverse("quiz_submit", args=[self.quiz.id]), {"answers": [
            {"questionIndex": 0, "answer": "4"},
            {"questionIndex": 1, "answer": " TRUE "},
            {"questionIndex": 2, "answer": "Lagos"},
        ]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["score"], 6)
        self.assertEqual(response.data["data"]["percentage"], 60.0)

        resubmit = client.post(reverse("quiz_submit", args=[self.quiz.id]), {"answers": []}, format="json")
        self.assertEqual(resubmit.status_code, status.HTTP_400_BAD_REQUEST)

    def test_submit_without_start_is_404(self):
        response = self.authenticate(self.student).post(reverse("quiz_submit", args=[self.quiz.id]),
                                                        {"answers": []}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_late_submission_is_rejected(self):
        client = self.authenticate(self.student)
        client.post(reverse("quiz_start", args=[self.quiz.id]))
        QuizAttempt.objects.filter(quiz=self.quiz).update(started_at=timezone.now() - timedelta(minutes=60))
        response = client.post(reverse("quiz_submit", args=[self.quiz.id]),
                               {"answers": [{"questionIndex": 0, "answer": "4"}]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Time limit exceeded")

    def test_quiz_with_attempts_cannot_be_updated(self):
        QuizAttempt.objects.create(quiz=self.quiz, student=self.student)
        response = self.authenticate(self.lecturer).patch(reverse("quiz_detail", args=[self.quiz.id]),
                                                          {"title": "Renamed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_attempt_stats_for_lecturer(self):
        QuizAttempt.objects.create(quiz=self.quiz, student=self.student, score=8, percentage=80,
                                   is_completed=True, submitted_at=timezone.now())
        QuizAttempt.objects.create(quiz=self.quiz, student=self.other_student, score=4, percentage=40,
                                   is_completed=True, submitted_at=timezone.now())
        response = self.authenticate(self.lecturer).get(reverse("quiz_attempts", args=[self.quiz.id]))
        stats = response.data["data"]["stats"]
        self.assertEqual(stats["totalAttempts"], 2)
        self.assertEqual(stats["averageScore"], 6)
        self.assertEqual(stats["highestScore"], 8)

    def test_repeated_answers_score_once(self):
        client = self.authenticate(self.student)
        client.post(reverse("quiz_start", args=[self.quiz.id]))
        response = client.post(reverse("quiz_submit", args=[self.quiz.id]),
                               {"answers": [{"questionIndex": 0, "answer": "4"}] * 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["score"], 4)
        self.assertEqual(response.data["data"]["percentage"], 40.0)


def test_grade_answers_ignores_out_of_range_indexes():
    graded, score = grade_answers(QUESTIONS, [
        {"questionIndex": 2, "answer": "abuja"},
        {"questionIndex": 7, "answer": "x"},
    ])
    assert score == 4
    assert [g["questionIndex"] for g in graded] == [2]
    assert graded[0]["isCorrect"] is True


def test_grade_answers_keeps_first_answer_per_question():
    graded, score = grade_answers(QUESTIONS, [
        {"questionIndex": 0, "answer": "3"},
        {"questionIndex": 0, "answer": "4"},
    ])
    assert score == 0
    assert len(graded) == 1
