from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from census.constants import ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE, ROLE_VIEWER
from census.models import User

TEST_SET = [
    ("admin1", ROLE_ADMIN),
    ("enfermera1", ROLE_NURSE),
    ("medico1", ROLE_DOCTOR),
    ("visor1", ROLE_VIEWER),
]


class Command(BaseCommand):
    help = "Ensure one test user per census role exists with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="123456")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "password": password, "is_active": True},
            )
            if not created:
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
