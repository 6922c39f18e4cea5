from django.urls import reverse
from rest_framework import status

from ..models import Message, Notification
from .utils import PortalTestCase


class MessageAPITests(PortalTestCase):
    def send(self, sender, recipient, subject="Hello", body="Hi there", **extra):
        payload = {"recipientId": recipient.id, "subject": subject, "body": body, **extra}
        return self.authenticate(sender).post(reverse("message_list"), payload, format="json")

    def test_send_sanitizes_and_notifies(self):
        response = self.send(self.student, self.lecturer, subject="Question", body="<script>x()</script>About CSC201")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        message = Message.objects.get()
        self.assertNotIn("<script>", message.body)
        self.assertTrue(message.body.endswith("About CSC201"))
        notification = Notification.objects.get(user=self.lecturer, title="New Message")
        self.assertEqual(notification.link, f"/messages/{message.id}")

    def test_unknown_recipient_is_404(self):
        response = self.authenticate(self.student).post(reverse("message_list"), {
            "recipientId": 99999, "subject": "x", "body": "y",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_inbox_and_sent_boxes(self):
        self.send(self.student, self.lecturer)
        inbox = self.authenticate(self.lecturer).get(reverse("message_list"))
        self.assertEqual(len(inbox.data["data"]), 1)
        self.assertEqual(inbox.data["unreadCount"], 1)

        sent = self.authenticate(self.student).get(reverse("message_list"), {"type": "sent"})
        self.assertEqual(len(sent.data["data"]), 1)

        bad = self.authenticate(self.student).get(reverse("message_list"), {"type": "archive"})
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(bad.data["error"]["message"], "Invalid message type. Use inbox or sent")

    def test_reading_thread_marks_read_for_recipient_only(self):
        root_id = self.send(self.student, self.lecturer).data["data"]["id"]
        self.send(self.lecturer, self.student, subject="Re: Hello", body="Answer", threadId=root_id)

        thread = self.authenticate(self.student).get(reverse("message_detail", args=[root_id]))
        self.assertEqual(thread.status_code, status.HTTP_200_OK)
        self.assertEqual(len(thread.data["data"]), 2)
        self.assertFalse(Message.objects.get(pk=root_id).is_read)

        self.authenticate(self.lecturer).get(reverse("message_detail", args=[root_id]))
        self.assertTrue(Message.objects.get(pk=root_id).is_read)

    def test_outsider_cannot_read_message(self):
        root_id = self.send(self.student, self.lecturer).data["data"]["id"]
        response = self.authenticate(self.other_student).get(reverse("message_detail", args=[root_id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_recipient_marks_read(self):
        root_id = self.send(self.student, self.lecturer).data["data"]["id"]
        denied = self.authenticate(self.student).post(reverse("message_read", args=[root_id]))
        self.assertEqual(denied.status_code, status.HTTP_403_FORBIDDEN)
        ok = self.authenticate(self.lecturer).post(reverse("message_read", args=[root_id]))
        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        count = self.authenticate(self.lecturer).get(reverse("message_unread_count"))
        self.assertEqual(count.data["data"]["count"], 0)
