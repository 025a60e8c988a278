# clinic_core/messaging/management/commands/dispatch_outbox.py

from django.core.management.base import BaseCommand

from clinic_core.messaging.services import OutboxService


class Command(BaseCommand):
    help = "Send due outbox emails and reminders (run from cron or a loop)."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=100, help="Maximum messages to process in this run.")

    def handle(self, *args, **options):
        stats = OutboxService.dispatch_due(limit=options["limit"])
        self.stdout.write(
            self.style.SUCCESS(
                f"Outbox dispatched. Sent: {stats['sent']}, retrying: {stats['retrying']}, failed: {stats['failed']}"
            )
        )
