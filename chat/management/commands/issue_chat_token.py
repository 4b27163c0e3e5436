from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from chat.auth import create_access_token


class Command(BaseCommand):
    help = "Print a chat bearer token for an existing user, carrying the user's role."

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument(
            "--minutes",
            type=int,
            default=None,
            help="Token lifetime in minutes (defaults to CHAT_TOKEN_TTL_MINUTES)",
        )

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(username=options["username"])
        except User.DoesNotExist:
            raise CommandError(f"No user named {options['username']!r}")

        expires = timedelta(minutes=options["minutes"]) if options["minutes"] else None
        self.stdout.write(create_access_token(user.username, user.role, expires_delta=expires))
