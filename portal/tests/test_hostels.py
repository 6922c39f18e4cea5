from django.urls import reverse
from rest_framework import status

from ..models import Hostel, HostelApplication
from ..services.hostels import create_hostel
from .utils import PortalTestCase


class HostelAPITests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.female_hall = create_hostel(
            name="Queen Amina Hall", gender="female",
            rooms=[{"number": "A1", "capacity": 1}, {"number": "A2", "capacity": 2}], facilities=["Wi-Fi"],
        )
        self.male_hall = create_hostel(name="King Jaja Hall", gender="male",
                                       rooms=[{"number": "K1", "capacity": 2}], facilities=[])

    def approved_application(self, student) -> HostelApplication:
        return HostelApplication.objects.create(student=student, session=self.session,
                                                status=HostelApplication.STATUS_APPROVED)

    def test_admin_creates_hostel_with_derived_capacity(self):
        response = self.authenticate(self.admin).post(reverse("hostel_list"), {
            "name": "Postgraduate Lodge", "gender": "mixed",
            "rooms": [{"number": "P1", "capacity": 3}, {"number": "P2", "capacity": 1}],
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data["data"]
        self.assertEqual(data["capacity"], 4)
        self.assertEqual(data["totalRooms"], 2)
        self.assertEqual(data["occupied"], 0)

    def test_student_cannot_create_hostel(self):
        response = self.authenticate(self.student).post(reverse("hostel_list"), {"name": "X", "gender": "male"},
                                                        format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_student_applies_once_per_session(self):
        client = self.authenticate(self.student)
        response = client.post(reverse("hostel_apply"), {"sessionId": self.session.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["status"], "pending")
        again = client.post(reverse("hostel_apply"), {"sessionId": self.session.id}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve_then_allocate(self):
        app = HostelApplication.objects.create(student=self.student, session=self.session)
        admin = self.authenticate(self.admin)
        approved = admin.post(reverse("hostel_application_approve", args=[app.id]))
        self.assertEqual(approved.data["data"]["status"], "approved")

        response = admin.post(reverse("hostel_application_allocate", args=[app.id]),
                              {"hostelId": self.female_hall.id, "roomNumber": "A2"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["status"], "allocated")
        self.assertEqual(response.data["data"]["roomNumber"], "A2")

        self.female_hall.refresh_from_db()
        self.assertEqual(self.female_hall.occupied, 1)
        room = next(r for r in self.female_hall.rooms if r["number"] == "A2")
        self.assertEqual(room["students"], [self.student.id])
        self.assertEqual(room["occupied"], 1)

    def test_allocation_requires_approval(self):
        app = HostelApplication.objects.create(student=self.student, session=self.session)
        response = self.authenticate(self.admin).post(reverse("hostel_application_allocate", args=[app.id]),
                                                      {"hostelId": self.female_hall.id, "roomNumber": "A1"},
                                                      format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_gender_mismatch_is_rejected(self):
        app = self.approved_application(self.other_student)
        response = self.authenticate(self.admin).post(reverse("hostel_application_allocate", args=[app.id]),
                                                      {"hostelId": self.female_hall.id, "roomNumber": "A1"},
                                                      format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Hostel gender does not match student gender")

    def test_full_room_is_rejected(self):
        first = self.approved_application(self.student)
        roommate = self.create_user("stud3", "student", gender="female", level=100)
        second = self.approved_application(roommate)
        admin = self.authenticate(self.admin)
        admin.post(reverse("hostel_application_allocate", args=[first.id]),
                   {"hostelId": self.female_hall.id, "roomNumber": "A1"}, format="json")
        response = admin.post(reverse("hostel_application_allocate", args=[second.id]),
                              {"hostelId": self.female_hall.id, "roomNumber": "A1"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Room is full")

    def test_unknown_room_is_404(self):
        app = self.approved_application(self.student)
        response = self.authenticate(self.admin).post(reverse("hostel_application_allocate", args=[app.id]),
                                                      {"hostelId": self.female_hall.id, "roomNumber": "Z9"},
                                                      format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_evict_frees_the_bed_and_reopens_application(self):
        app = self.approved_application(self.student)
        admin = self.authenticate(self.admin)
        admin.post(reverse("hostel_application_allocate", args=[app.id]),
                   {"hostelId": self.female_hall.id, "roomNumber": "A1"}, format="json")

        response = admin.post(reverse("hostel_room_evict", args=[self.female_hall.id, "A1"]),
                              {"studentId": self.student.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["room"]["students"], [])
        self.female_hall.refresh_from_db()
        self.assertEqual(self.female_hall.occupied, 0)
        app.refresh_from_db()
        self.assertEqual(app.status, HostelApplication.STATUS_APPROVED)
        self.assertIsNone(app.hostel_id)

    def test_cannot_delete_occupied_hostel(self):
        app = self.approved_application(self.other_student)
        admin = self.authenticate(self.admin)
        admin.post(reverse("hostel_application_allocate", args=[app.id]),
                   {"hostelId": self.male_hall.id, "roomNumber": "K1"}, format="json")
        response = admin.delete(reverse("hostel_detail", args=[self.male_hall.id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Hostel.objects.filter(pk=self.male_hall.id).exists())

    def test_student_sees_only_own_application(self):
        app = HostelApplication.objects.create(student=self.student, session=self.session)
        response = self.authenticate(self.other_student).get(reverse("hostel_application_detail", args=[app.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_stats(self):
        response = self.authenticate(self.admin).get(reverse("hostel_stats"))
        data = response.data["data"]
        self.assertEqual(data["totalHostels"], 2)
        self.assertEqual(data["totalCapacity"], 5)
        self.assertEqual(data["byGender"]["female"], 1)


class HostelUpdateTests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.hall = create_hostel(
            name="Queen Amina Hall", gender="female",
            rooms=[{"number": "A1", "capacity": 1}, {"number": "A2", "capacity": 2}], facilities=[],
        )
        self.place(self.student, "A2")

    def place(self, student, number: str) -> None:
        rooms = self.hall.rooms
        for room in rooms:
            if room["number"] == number:
                room["students"].append(student.id)
                room["occupied"] = len(room["students"])
        self.hall.rooms = rooms
        self.hall.occupied = sum(r["occupied"] for r in rooms)
        self.hall.save()

    def patch(self, payload):
        return self.authenticate(self.admin).patch(reverse("hostel_detail", args=[self.hall.id]), payload,
                                                   format="json")

    def test_room_rewrite_keeps_allocated_students(self):
        response = self.patch({"rooms": [{"number": "A2", "capacity": 3}, {"number": "A3", "capacity": 2}]})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]
        rooms = {r["number"]: r for r in data["rooms"]}
        self.assertEqual(set(rooms), {"A2", "A3"})
        self.assertEqual(rooms["A2"]["students"], [self.student.id])
        self.assertEqual(rooms["A2"]["occupied"], 1)
        self.assertEqual(data["capacity"], 5)
        self.assertEqual(data["totalRooms"], 2)
        self.assertEqual(data["occupied"], 1)

    def test_occupied_room_cannot_be_removed(self):
        response = self.patch({"rooms": [{"number": "A1", "capacity": 1}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Room A2 has allocated students and cannot be removed")
        self.hall.refresh_from_db()
        self.assertEqual(len(self.hall.rooms), 2)

    def test_room_capacity_cannot_drop_below_occupancy(self):
        roommate = self.create_user("stud3", "student", gender="female", student_id="ST/0003/2024")
        self.place(roommate, "A2")
        response = self.patch({"rooms": [{"number": "A1", "capacity": 1}, {"number": "A2", "capacity": 1}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Room A2 capacity cannot drop below its occupancy")

    def test_gender_change_conflicting_with_residents_is_refused(self):
        response = self.patch({"gender": "male"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["message"], "Hostel gender conflicts with allocated students")
        self.hall.refresh_from_db()
        self.assertEqual(self.hall.gender, "female")

        mixed = self.patch({"gender": "mixed", "facilities": ["Laundry"]})
        self.assertEqual(mixed.status_code, status.HTTP_200_OK)
        self.assertEqual(mixed.data["data"]["facilities"], ["Laundry"])
