from django.urls import reverse
from rest_framework import status

from ..models import User
from ..services.users import generate_student_id
from .utils import PortalTestCase


class UserAPITests(PortalTestCase):
    def test_admin_lists_and_filters_users(self):
        response = self.authenticate(self.admin).get(reverse("user_list"), {"role": "student"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({u["username"] for u in response.data["data"]}, {"stud1", "stud2"})
        self.assertEqual(self.authenticate(self.lecturer).get(reverse("user_list")).status_code,
                         status.HTTP_403_FORBIDDEN)

    def test_student_only_reads_own_profile(self):
        client = self.authenticate(self.student)
        self.assertEqual(client.get(reverse("user_detail", args=[self.student.id])).status_code, status.HTTP_200_OK)
        self.assertEqual(client.get(reverse("user_detail", args=[self.other_student.id])).status_code,
                         status.HTTP_403_FORBIDDEN)

    def test_self_update_ignores_admin_only_fields(self):
        response = self.authenticate(self.student).patch(reverse("my_profile"), {
            "phone": "08012345678", "address": "<i>Hall 3</i>", "level": 400,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.student.refresh_from_db()
        self.assertEqual(self.student.phone, "08012345678")
        self.assertEqual(self.student.address, "Hall 3")
        self.assertEqual(self.student.level, 200)

    def test_admin_updates_level(self):
        response = self.authenticate(self.admin).patch(reverse("user_detail", args=[self.student.id]),
                                                       {"level": 300}, format="json")
        self.assertEqual(response.data["data"]["level"], 300)

    def test_change_password(self):
        client = self.authenticate(self.student)
        wrong = client.post(reverse("change_password"), {"currentPassword": "nope", "newPassword": "N3wPassw0rd"},
                            format="json")
        self.assertEqual(wrong.status_code, status.HTTP_401_UNAUTHORIZED)
        ok = client.post(reverse("change_password"), {"currentPassword": "P@ssw0rd1", "newPassword": "N3wPassw0rd"},
                         format="json")
        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        self.student.refresh_from_db()
        self.assertTrue(self.student.check_password("N3wPassw0rd"))

    def test_deactivate_and_activate(self):
        admin = self.authenticate(self.admin)
        admin.post(reverse("user_deactivate", args=[self.student.id]))
        self.student.refresh_from_db()
        self.assertFalse(self.student.is_active)
        admin.post(reverse("user_activate", args=[self.student.id]))
        self.student.refresh_from_db()
        self.assertTrue(self.student.is_active)

        self_lockout = admin.post(reverse("user_deactivate", args=[self.admin.id]))
        self.assertEqual(self_lockout.status_code, status.HTTP_400_BAD_REQUEST)

    def test_role_change_to_student_assigns_id(self):
        response = self.authenticate(self.admin).patch(reverse("user_role", args=[self.lecturer.id]),
                                                       {"role": "student"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["data"]["studentId"].startswith("ST/"))

        invalid = self.authenticate(self.admin).patch(reverse("user_role", args=[self.lecturer.id]),
                                                      {"role": "dean"}, format="json")
        self.assertEqual(invalid.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stats_by_role(self):
        data = self.authenticate(self.admin).get(reverse("user_stats")).data["data"]
        students = next(r for r in data["byRole"] if r["role"] == "student")
        self.assertEqual(students["count"], 2)
        self.assertEqual(data["overall"]["total"], User.objects.count())

    def test_department_students(self):
        response = self.authenticate(self.lecturer).get(reverse("department_students", args=[self.dept.id]))
        self.assertEqual(response.data["pagination"]["total"], 2)
        missing = self.authenticate(self.lecturer).get(reverse("department_students", args=[9999]))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_search_needs_two_characters(self):
        client = self.authenticate(self.lecturer)
        short = client.get(reverse("user_search"), {"q": "a"})
        self.assertEqual(short.status_code, status.HTTP_400_BAD_REQUEST)
        found = client.get(reverse("user_search"), {"q": "obi"})
        self.assertEqual([u["id"] for u in found.data["data"]], [self.student.id])

    def test_self_deactivation_needs_password(self):
        client = self.authenticate(self.other_student)
        self.assertEqual(client.post(reverse("deactivate_my_account"), {}, format="json").status_code,
                         status.HTTP_400_BAD_REQUEST)
        self.assertEqual(client.post(reverse("deactivate_my_account"), {"password": "bad"}, format="json").status_code,
                         status.HTTP_401_UNAUTHORIZED)
        ok = client.post(reverse("deactivate_my_account"), {"password": "P@ssw0rd1"}, format="json")
        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        self.other_student.refresh_from_db()
        self.assertFalse(self.other_student.is_active)

    def test_generate_student_id_skips_taken_numbers(self):
        User.objects.create_user(username="taken", password="x", student_id="ST/0003/2024")
        self.assertEqual(generate_student_id(2024), "ST/0004/2024")
