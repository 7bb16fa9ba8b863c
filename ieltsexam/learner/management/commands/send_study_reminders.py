"""
Fan out vocabulary-review and test reminders
Usage: python manage.py send_study_reminders [--reviews-only | --tests-only]
Meant to run from cron (e.g. hourly).
"""
from django.core.management.base import BaseCommand

from learner.services.notification_service import NotificationService


class Command(BaseCommand):
    help = 'Send vocabulary review and test reminder notifications'

    def add_arguments(self, parser):
        group = parser.add_mutually_exclusive_group()
        group.add_argument('--reviews-only', action='store_true', help='Only send vocabulary review reminders')
        group.add_argument('--tests-only', action='store_true', help='Only send test reminders')

    def handle(self, *args, **options):
        if not options.get('tests_only'):
            sent = NotificationService.send_review_reminders()
            self.stdout.write(self.style.SUCCESS(f'  ✓ {sent} vocabulary review reminders sent'))

        if not options.get('reviews_only'):
            sent = NotificationService.send_test_reminders()
            self.stdout.write(self.style.SUCCESS(f'  ✓ {sent} test reminders sent'))
