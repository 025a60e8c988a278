# clinic_core/accounts/management/commands/ensure_superadmin.py

import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from clinic_core.common.roles import Role


class Command(BaseCommand):
    help = "Ensure a SUPERADMIN account exists (idempotent). Reads SUPERADMIN_EMAIL / SUPERADMIN_PASSWORD."

    def add_arguments(self, parser):
        parser.add_argument("--email", default=os.getenv("SUPERADMIN_EMAIL", ""))
        parser.add_argument("--password", default=os.getenv("SUPERADMIN_PASSWORD", ""))

    def handle(self, *args, **options):
        email = (options["email"] or "").strip().lower()
        password = options["password"] or ""
        if not email or not password:
            raise CommandError("Provide --email/--password or SUPERADMIN_EMAIL/SUPERADMIN_PASSWORD.")

        User = get_user_model()
        if User.objects.filter(email__iexact=email).exists():
            self.stdout.write(f"Superadmin already exists: {email}")
            return

        User.objects.create_superuser(email, password, first_name="Super", last_name="Admin", role=Role.SUPERADMIN)
        self.stdout.write(self.style.SUCCESS(f"Superadmin created: {email}"))
