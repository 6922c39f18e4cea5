from django.urls import reverse
from rest_framework import status

from ..models import Clearance
from ..services.clearance import DEFAULT_DEPARTMENTS, ensure_clearance
from .utils import PortalTestCase


class ClearanceAPITests(PortalTestCase):
    def test_first_visit_creates_default_workflow(self):
        response = self.authenticate(self.student).get(reverse("my_clearance"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]
        self.assertEqual(data["overallStatus"], "in-progress")
        self.assertEqual([d["name"] for d in data["departments"]], [d[0] for d in DEFAULT_DEPARTMENTS])
        self.assertEqual(data["progress"], {"approved": 0, "total": len(DEFAULT_DEPARTMENTS)})

        self.authenticate(self.student).get(reverse("my_clearance"))
        self.assertEqual(Clearance.objects.filter(student=self.student).count(), 1)

    def test_department_approvals_complete_clearance(self):
        clearance = ensure_clearance(self.student)
        client = self.authenticate(self.admin)
        for name, _, _ in DEFAULT_DEPARTMENTS[:-1]:
            client.put(reverse("clearance_department_status", args=[clearance.id]),
                       {"departmentName": name.lower(), "status": "approved"}, format="json")
        clearance.refresh_from_db()
        self.assertEqual(clearance.overall_status, Clearance.STATUS_IN_PROGRESS)

        response = client.put(reverse("clearance_department_status", args=[clearance.id]),
                              {"departmentName": DEFAULT_DEPARTMENTS[-1][0], "status": "approved"}, format="json")
        self.assertEqual(response.data["data"]["overallStatus"], "completed")
        self.assertIsNotNone(response.data["data"]["completedAt"])

    def test_rejected_department_rejects_overall(self):
        clearance = ensure_clearance(self.student)
        response = self.authenticate(self.bursar).put(
            reverse("clearance_department_status", args=[clearance.id]),
            {"departmentName": "Bursary", "status": "rejected", "comment": "Outstanding fees"}, format="json",
        )
        self.assertEqual(response.data["data"]["overallStatus"], "rejected")

    def test_unknown_department_is_bad_request(self):
        clearance = ensure_clearance(self.student)
        response = self.authenticate(self.admin).put(reverse("clearance_department_status", args=[clearance.id]),
                                                     {"departmentName": "Kitchen", "status": "approved"},
                                                     format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve_all_and_reject_with_reason(self):
        clearance = ensure_clearance(self.student)
        client = self.authenticate(self.admin)
        approved = client.post(reverse("clearance_approve", args=[clearance.id]), {"comment": "ok"}, format="json")
        self.assertEqual(approved.data["data"]["overallStatus"], "completed")

        missing = client.post(reverse("clearance_reject", args=[clearance.id]), {}, format="json")
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)

        rejected = client.post(reverse("clearance_reject", args=[clearance.id]),
                               {"reason": "ID card not returned", "departmentName": "Security"}, format="json")
        data = rejected.data["data"]
        self.assertEqual(data["overallStatus"], "rejected")
        self.assertIsNone(data["completedAt"])
        security = next(d for d in data["departments"] if d["name"] == "Security")
        self.assertEqual(security["status"], "rejected")

    def test_document_request_lifecycle(self):
        created = self.authenticate(self.student).post(reverse("clearance_request_document"), {
            "documentType": "transcript", "purpose": "Masters application", "deliveryMethod": "email",
        }, format="json")
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        request_id = created.data["data"]["id"]
        self.assertEqual(created.data["data"]["urgency"], "normal")

        clearance = Clearance.objects.get(student=self.student)
        response = self.authenticate(self.admin).put(
            reverse("clearance_document_status", args=[clearance.id, request_id]), {"status": "ready"}, format="json",
        )
        self.assertEqual(response.data["data"]["status"], "ready")

        missing = self.authenticate(self.admin).put(
            reverse("clearance_document_status", args=[clearance.id, "nope"]), {"status": "ready"}, format="json",
        )
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_student_cannot_view_other_clearance(self):
        clearance = ensure_clearance(self.other_student)
        response = self.authenticate(self.student).get(reverse("clearance_detail", args=[clearance.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters_by_department_status(self):
        ensure_clearance(self.student)
        ensure_clearance(self.other_student)
        response = self.authenticate(self.hod).get(reverse("clearance_list"), {"department": "library"})
        self.assertEqual(response.data["pagination"]["total"], 2)
