"""
Bursary overview and report export.
"""
import base64
from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from ..models import Payment, Scholarship
from ..services import bursary
from .utils import PortalTestCase


class BursaryReportTests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.verified = Payment.objects.create(
            student=self.student, reference="PAY-100", type="tuition", amount=Decimal("150000"),
            status=Payment.STATUS_VERIFIED, session=self.session, semester="first", payment_date=timezone.now(),
        )
        self.pending = Payment.objects.create(
            student=self.other_student, reference="PAY-101", type="library", amount=Decimal("5000"),
            session=self.session, semester="",
        )
        Scholarship.objects.create(name="Faculty Bursary", amount=Decimal("100000"), available_slots=4,
                                   filled_slots=2, application_deadline=timezone.now() + timedelta(days=5))

    def test_overview_totals(self):
        response = self.authenticate(self.bursar).get(reverse("bursary_reports"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        payments = response.data["data"]["payments"]
        self.assertEqual(payments["totals"]["totalCount"], 2)
        self.assertEqual(payments["totals"]["totalAmount"], 155000.0)
        self.assertEqual(payments["totals"]["verifiedAmount"], 150000.0)
        self.assertEqual(payments["totals"]["pendingAmount"], 5000.0)
        self.assertEqual(len(payments["recent"]), 2)
        scholarships = response.data["data"]["scholarships"]
        self.assertEqual(scholarships["summary"]["totalBeneficiaries"], 2)

    def test_overview_filters_by_status_list(self):
        response = self.authenticate(self.bursar).get(reverse("bursary_reports"), {"status": "verified,rejected"})
        self.assertEqual(response.data["data"]["payments"]["totals"]["totalCount"], 1)

    def test_overview_is_cached_until_cleared(self):
        client = self.authenticate(self.admin)
        client.get(reverse("bursary_reports"))
        Payment.objects.create(student=self.student, reference="PAY-102", type="exam", amount=Decimal("2000"),
                               session=self.session)
        cached = client.get(reverse("bursary_reports"))
        self.assertEqual(cached.data["data"]["payments"]["totals"]["totalCount"], 2)

        bursary.clear_report_cache()
        fresh = client.get(reverse("bursary_reports"))
        self.assertEqual(fresh.data["data"]["payments"]["totals"]["totalCount"], 3)

    def test_invalid_filters(self):
        client = self.authenticate(self.bursar)
        bad_status = client.get(reverse("bursary_reports"), {"status": "lost"})
        self.assertEqual(bad_status.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(bad_status.data["error"]["message"], "Unsupported payment status: lost")

        reversed_range = client.get(reverse("bursary_reports"), {"startDate": "2024-05-01", "endDate": "2024-01-01"})
        self.assertEqual(reversed_range.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(reversed_range.data["error"]["message"], "startDate cannot be after endDate")

        garbage = client.get(reverse("bursary_reports"), {"startDate": "yesterday"})
        self.assertEqual(garbage.status_code, status.HTTP_400_BAD_REQUEST)

    def test_students_are_forbidden(self):
        response = self.authenticate(self.student).get(reverse("bursary_reports"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_json_report(self):
        response = self.authenticate(self.bursar).post(reverse("bursary_generate_report"), {
            "format": "json", "filters": {"types": ["tuition"]}, "includeScholarships": True,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data["data"]
        self.assertEqual(data["metadata"]["rowCount"], 1)
        self.assertEqual(data["rows"][0]["reference"], "PAY-100")
        self.assertEqual(data["summary"]["verifiedAmount"], 150000.0)
        self.assertIsNone(data["file"])
        self.assertEqual(data["scholarshipSummary"][0]["beneficiaries"], 2)

    def test_csv_report_quotes_every_value(self):
        response = self.authenticate(self.bursar).post(reverse("bursary_generate_report"),
                                                       {"format": "CSV", "filters": {"status": "pending"}},
                                                       format="json")
        data = response.data["data"]
        self.assertEqual(data["metadata"]["format"], "csv")
        self.assertEqual(data["file"]["mimeType"], "text/csv")
        text = base64.b64decode(data["file"]["content"]).decode()
        header, row = text.split("\n")
        self.assertEqual(header, ",".join(bursary.CSV_HEADER))
        self.assertTrue(row.startswith('"PAY-101","Bayo Ade","ST/0002/2024"'))
        # empty semester and payment date stay quoted
        self.assertIn('"5000.0","2024/2025","",""', row)
        self.assertEqual(data["file"]["size"], len(text.encode()))
        self.assertEqual(len(data["preview"]), 1)

    def test_pdf_report_is_a_pdf_document(self):
        response = self.authenticate(self.bursar).post(reverse("bursary_generate_report"), {"format": "pdf"},
                                                       format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        file = response.data["data"]["file"]
        raw = base64.b64decode(file["content"])
        self.assertTrue(raw.startswith(b"%PDF-"))
        self.assertEqual(file["mimeType"], "application/pdf")
        self.assertEqual(file["size"], len(raw))
        self.assertEqual(len(response.data["data"]["preview"]), 2)

    def test_unknown_format(self):
        response = self.authenticate(self.bursar).post(reverse("bursary_generate_report"), {"format": "xlsx"},
                                                       format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "format must be one of json, csv, or pdf")

    def test_limit_is_clamped(self):
        self.assertEqual(bursary.clamp_limit(5000), 2000)
        self.assertEqual(bursary.clamp_limit(-3), 1)
        self.assertEqual(bursary.clamp_limit(None), 500)
        self.assertEqual(bursary.clamp_limit("abc"), 500)
        response = self.authenticate(self.bursar).post(reverse("bursary_generate_report"), {"limit": 1},
                                                       format="json")
        self.assertEqual(response.data["data"]["metadata"]["rowCount"], 1)
        self.assertEqual(response.data["data"]["metadata"]["limit"], 1)
