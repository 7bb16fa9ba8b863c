"""
Management command to load the level table and badge catalog
Usage: python manage.py seed_gamification [--dry-run]
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from learner.models import Badge, UserLevel

LEVELS = [
    (1, 'Beginner', 0),
    (2, 'Novice', 100),
    (3, 'Apprentice', 250),
    (4, 'Intermediate', 500),
    (5, 'Advanced', 1000),
    (6, 'Expert', 2000),
    (7, 'Master', 3500),
    (8, 'Grandmaster', 5000),
]

BADGES = [
    # Streaks
    {'name': 'Getting Started', 'badge_type': 'streak', 'rarity': 'common', 'module_type': 'login_streak',
     'required_count': 3, 'description': 'Log in 3 days in a row'},
    {'name': 'Weekly Warrior', 'badge_type': 'streak', 'rarity': 'uncommon', 'module_type': 'login_streak',
     'required_count': 7, 'description': 'Log in 7 days in a row'},
    {'name': 'Dedicated Learner', 'badge_type': 'streak', 'rarity': 'rare', 'module_type': 'login_streak',
     'required_count': 14, 'description': 'Log in 14 days in a row'},
    {'name': 'Monthly Master', 'badge_type': 'streak', 'rarity': 'epic', 'module_type': 'login_streak',
     'required_count': 30, 'description': 'Log in 30 days in a row'},
    {'name': 'Unstoppable', 'badge_type': 'streak', 'rarity': 'legendary', 'module_type': 'login_streak',
     'required_count': 90, 'description': 'Log in 90 days in a row'},

    # Tests
    {'name': 'First Test', 'badge_type': 'tests', 'rarity': 'common', 'module_type': 'tests_completed',
     'required_count': 1, 'description': 'Complete your first practice test'},
    {'name': 'Test Explorer', 'badge_type': 'tests', 'rarity': 'uncommon', 'module_type': 'tests_completed',
     'required_count': 5, 'description': 'Complete 5 practice tests'},
    {'name': 'Test Expert', 'badge_type': 'tests', 'rarity': 'rare', 'module_type': 'tests_completed',
     'required_count': 10, 'description': 'Complete 10 practice tests'},
    {'name': 'Test Master', 'badge_type': 'tests', 'rarity': 'epic', 'module_type': 'tests_completed',
     'required_count': 25, 'description': 'Complete 25 practice tests'},
    {'name': 'Test Champion', 'badge_type': 'tests', 'rarity': 'legendary', 'module_type': 'tests_completed',
     'required_count': 50, 'description': 'Complete 50 practice tests'},

    # Vocabulary
    {'name': 'Word Collector', 'badge_type': 'vocabulary', 'rarity': 'common', 'module_type': 'vocabulary_added',
     'required_count': 10, 'description': 'Add 10 words to your vocabulary list'},
    {'name': 'Vocabulary Builder', 'badge_type': 'vocabulary', 'rarity': 'uncommon', 'module_type': 'vocabulary_added',
     'required_count': 50, 'description': 'Add 50 words to your vocabulary list'},
    {'name': 'Word Expert', 'badge_type': 'vocabulary', 'rarity': 'rare', 'module_type': 'vocabulary_added',
     'required_count': 100, 'description': 'Add 100 words to your vocabulary list'},
    {'name': 'Vocabulary Master', 'badge_type': 'vocabulary', 'rarity': 'epic', 'module_type': 'vocabulary_added',
     'required_count': 250, 'description': 'Add 250 words to your vocabulary list'},
    {'name': 'Lexicon Legend', 'badge_type': 'vocabulary', 'rarity': 'legendary', 'module_type': 'vocabulary_added',
     'required_count': 500, 'description': 'Add 500 words to your vocabulary list'},
    {'name': 'Review Champion', 'badge_type': 'vocabulary', 'rarity': 'rare', 'module_type': 'vocabulary_reviewed',
     'required_count': 100, 'description': 'Review 100 vocabulary words'},

    # Events
    {'name': 'Perfect Score', 'badge_type': 'score', 'rarity': 'epic', 'module_type': None,
     'required_score': 100, 'repeatable': True, 'description': 'Score 100% on a practice test'},
    {'name': 'Early Adopter', 'badge_type': 'special', 'rarity': 'rare', 'module_type': None,
     'description': 'Joined the platform during its first release'},
]


class Command(BaseCommand):
    help = 'Create the level table and badge catalog'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be created without saving',
        )

    def handle(self, *args, **options):
        dry_run = options.get('dry_run', False)

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be saved'))
            for data in BADGES:
                self.stdout.write(f"  [DRY RUN] Would upsert badge '{data['name']}'")
            for level, name, points in LEVELS:
                self.stdout.write(f"  [DRY RUN] Would upsert level {level} '{name}' ({points} pts)")
            return

        with transaction.atomic():
            for data in BADGES:
                defaults = {key: value for key, value in data.items() if key != 'name'}
                badge, created = Badge.objects.update_or_create(name=data['name'], defaults=defaults)
                verb = 'Created' if created else 'Updated'
                self.stdout.write(self.style.SUCCESS(f"  ✓ {verb} badge '{badge.name}'"))

            for level, name, points in LEVELS:
                _, created = UserLevel.objects.update_or_create(
                    level=level, defaults={'name': name, 'required_points': points}
                )
                verb = 'Created' if created else 'Updated'
                self.stdout.write(self.style.SUCCESS(f"  ✓ {verb} level {level} '{name}'"))

        self.stdout.write(self.style.SUCCESS(f'Done. {len(BADGES)} badges and {len(LEVELS)} levels in place.'))
