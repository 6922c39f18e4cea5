from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from portal.models import User
from portal.services.users import generate_student_id

TEST_SET = [
    ("admin1", "admin"),
    ("bursary1", "bursary"),
    ("hod1", "hod"),
    ("lecturer1", "lecturer"),
    ("student1", "student"),
]


class Command(BaseCommand):
    help = "Ensure one test account per role exists with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Password123!")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "role": role,
                    "email": f"{username}@university.test",
                    "password": password,
                    "is_active": True,
                },
            )
            if not created:
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            if role == "student" and not u.student_id:
                u.student_id = generate_student_id()
                u.level = u.level or 100
                u.gender = u.gender or "male"
                u.save(update_fields=["student_id", "level", "gender"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
