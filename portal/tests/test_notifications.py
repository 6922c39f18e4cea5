from django.urls import reverse
from rest_framework import status

from ..models import Notification
from ..services.notifications import create_bulk_notifications, create_notification
from .utils import PortalTestCase


class NotificationAPITests(PortalTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.first = create_notification(self.student, "info", "One", "First message")
        self.second = create_notification(self.student.id, "warning", "Two", "<b>Second</b> message", "/x")
        create_notification(self.other_student, "info", "Other", "Not yours")

    def test_list_is_scoped_to_user(self):
        response = self.authenticate(self.student).get(reverse("notification_list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n["title"] for n in response.data["data"]], ["Two", "One"])
        self.assertEqual(response.data["unreadCount"], 2)

    def test_message_is_sanitized(self):
        self.second.refresh_from_db()
        self.assertEqual(self.second.message, "Second message")

    def test_read_filter(self):
        client = self.authenticate(self.student)
        client.post(reverse("notification_read", args=[self.first.id]))
        unread = client.get(reverse("notification_list"), {"read": "false"})
        self.assertEqual([n["id"] for n in unread.data["data"]], [self.second.id])

    def test_cannot_touch_other_users_notification(self):
        other = Notification.objects.get(title="Other")
        client = self.authenticate(self.student)
        self.assertEqual(client.post(reverse("notification_read", args=[other.id])).status_code,
                         status.HTTP_403_FORBIDDEN)
        self.assertEqual(client.delete(reverse("notification_detail", args=[other.id])).status_code,
                         status.HTTP_403_FORBIDDEN)

    def test_read_all_then_clear_read(self):
        client = self.authenticate(self.student)
        marked = client.post(reverse("notification_read_all"))
        self.assertEqual(marked.data["data"]["modifiedCount"], 2)
        self.assertEqual(client.get(reverse("notification_unread_count")).data["data"]["count"], 0)

        cleared = client.delete(reverse("notification_clear_read"))
        self.assertEqual(cleared.data["data"]["deletedCount"], 2)
        self.assertFalse(Notification.objects.filter(user=self.student).exists())
        self.assertTrue(Notification.objects.filter(user=self.other_student).exists())

    def test_recent(self):
        data = self.authenticate(self.student).get(reverse("notification_recent")).data["data"]
        self.assertEqual(len(data["notifications"]), 2)
        self.assertEqual(data["unreadCount"], 2)

    def test_bulk_deduplicates_recipients(self):
        created = create_bulk_notifications([self.lecturer, self.lecturer.id, self.hod], "success", "Bulk", "Hello")
        self.assertEqual(len(created), 2)

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValueError):
            create_notification(self.student, "fatal", "x", "y")
