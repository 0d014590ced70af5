from django.core.management.base import BaseCommand, CommandError

from clinic.models import Role, User
from clinic.services.professionals import assign_role


class Command(BaseCommand):
    help = "Assign a role (admin or professional) to a user identified by e-mail."

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("role", choices=[Role.ADMIN, Role.PROFESSIONAL])

    def handle(self, *args, **opts):
        user = User.objects.filter(email__iexact=opts["email"]).first()
        if user is None:
            raise CommandError(f"No user with e-mail {opts['email']}")
        assign_role(user, opts["role"])
        self.stdout.write(self.style.SUCCESS(f"ok: {user.email} -> {sorted(user.role_names())}"))
