from django.core.management.base import BaseCommand

from chat.retention import RetentionSweeper
from chat.store import build_message_store


class Command(BaseCommand):
    help = "Delete chat messages older than the retention window."

    def add_arguments(self, parser):
        parser.add_argument(
            "--backend",
            choices=["database", "json"],
            default=None,
            help="Store to purge (defaults to CHAT_STORE_BACKEND)",
        )

    def handle(self, *args, **options):
        store = build_message_store(options["backend"])
        removed = RetentionSweeper(store).run_once()
        self.stdout.write(self.style.SUCCESS(f"Removed {removed} expired message(s)"))
