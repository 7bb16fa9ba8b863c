"""
Start an rq worker for queued AI scoring jobs
Usage: python manage.py run_scoring_worker [--burst]
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from rq import Worker

from exams.services.jobs import get_redis


class Command(BaseCommand):
    help = 'Run the rq worker that processes AI scoring jobs'

    def add_arguments(self, parser):
        parser.add_argument(
            '--burst',
            action='store_true',
            help='Exit once the queue is empty',
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS(f"Listening on queue '{settings.RQ_QUEUE}' at {settings.REDIS_URL}"))
        worker = Worker([settings.RQ_QUEUE], connection=get_redis())
        worker.work(with_scheduler=True, burst=options.get('burst', False))
