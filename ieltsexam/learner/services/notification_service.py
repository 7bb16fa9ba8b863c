"""
Notification Service
Fans system events (test completion, level up, badges, streaks, reminders)
out into the per-user inbox, and backs the inbox endpoints.
"""
from datetime import timedelta
from django.contrib.auth import get_user_model
from django.utils import timezone
import logging

from ieltsexam.exceptions import NotFoundError
from ..models import Notification, Vocabulary

logger = logging.getLogger(__name__)

WELCOME_NOTIFICATIONS = [
    (
        'Welcome to the IELTS Exam Simulation Platform!',
        'We are excited to help you prepare for your IELTS exam. Start by exploring our features and taking a practice test.',
        'high',
        '/dashboard',
    ),
    (
        'Vocabulary Learning Feature',
        'Build your vocabulary with our advanced learning system. Add words and practice with spaced repetition for better retention.',
        'medium',
        '/vocabulary',
    ),
    (
        'Practice All IELTS Modules',
        'Our platform offers comprehensive practice for all IELTS modules: Reading, Writing, Listening, and Speaking.',
        'medium',
        '/dashboard',
    ),
]

REVIEW_REMINDER_WINDOW = timedelta(hours=24)
TEST_REMINDER_WINDOW = timedelta(days=7)
STALE_ATTEMPT_AGE = timedelta(days=3)


def streak_message(days):
    """(title, message, priority) for a streak milestone, or None"""
    if days == 3:
        return ('3-Day Streak!', 'You have been learning for 3 days in a row. Keep up the great work!', 'medium')
    if days == 7:
        return ('1-Week Streak!', 'Congratulations on your 7-day streak! Consistency is key to IELTS success.', 'high')
    if days == 14:
        return ('2-Week Streak!', '14 days of continuous learning! Your dedication is impressive.', 'high')
    if days == 30:
        return (
            '30-Day Streak!',
            'Amazing! You have maintained a study habit for 30 days. This will make a real difference in your IELTS score.',
            'high',
        )
    if days > 30 and days % 30 == 0:
        months = days // 30
        return (
            f'{months}-Month Streak!',
            f'Incredible! You have been consistently studying for {months} months. Your dedication is truly remarkable.',
            'high',
        )
    if days % 7 == 0:
        weeks = days // 7
        return (f'{weeks}-Week Streak!', f'You have maintained your learning streak for {weeks} weeks! Keep going!', 'medium')
    return None


class NotificationService:
    """Service for creating and reading user notifications"""

    @staticmethod
    def create(user, type, title, message, priority='medium', action_link=None, scheduled_for=None):
        notification = Notification.objects.create(
            user=user,
            type=type,
            title=title,
            message=message,
            priority=priority,
            action_link=action_link,
            scheduled_for=scheduled_for or timezone.now(),
        )
        logger.debug(f"Notification '{title}' created for user {user.id}")
        return notification

    # Event notifications

    @staticmethod
    def create_welcome_notifications(user):
        return [
            NotificationService.create(user, 'system', title, message, priority, link)
            for title, message, priority, link in WELCOME_NOTIFICATIONS
        ]

    @staticmethod
    def notify_test_completed(user, attempt):
        test = attempt.test
        if attempt.score is not None:
            message = f'You completed "{test.title}" with a score of {attempt.score}.'
        else:
            message = f'You completed "{test.title}". Your responses are waiting to be scored.'
        return NotificationService.create(
            user, 'achievement', f'{test.get_module_display()} Test Completed', message,
            'medium', f'/results/{attempt.id}',
        )

    @staticmethod
    def notify_level_up(user, level):
        return NotificationService.create(
            user,
            'achievement',
            f'Level Up! You are now Level {level.level}',
            f"Congratulations! You've reached {level.name} (Level {level.level}). Keep earning points to level up further!",
            'high',
            '/achievements',
        )

    @staticmethod
    def notify_badge_earned(user, badge, times_earned=1):
        title = f'Achievement Unlocked: {badge.name}'
        if times_earned > 1:
            title = f'{title} (x{times_earned})'
        return NotificationService.create(
            user, 'achievement', title, badge.description or badge.name, 'high', '/achievements',
        )

    @staticmethod
    def notify_streak_milestone(user, days):
        content = streak_message(days)
        if content is None:
            return None
        title, message, priority = content
        return NotificationService.create(user, 'achievement', title, message, priority, '/dashboard')

    # Periodic reminders

    @staticmethod
    def send_review_reminders(now=None):
        """One vocabulary_review notice per user with due words, at most once per 24h"""
        now = now or timezone.now()
        due_users = Vocabulary.objects.filter(next_review__lte=now).values_list('user_id', flat=True).distinct()
        recently_notified = set(
            Notification.objects.filter(
                type='vocabulary_review', created_at__gt=now - REVIEW_REMINDER_WINDOW
            ).values_list('user_id', flat=True)
        )

        created = 0
        for user in get_user_model().objects.filter(id__in=list(due_users), is_active=True):
            if user.id in recently_notified:
                continue
            NotificationService.create(
                user,
                'vocabulary_review',
                'Vocabulary Review Due',
                'You have vocabulary items that are ready to be reviewed. Regular review helps you memorize words better.',
                'medium',
                '/vocabulary/review',
            )
            created += 1

        logger.info(f"Vocabulary review reminders sent: {created}")
        return created

    @staticmethod
    def send_test_reminders(now=None):
        """
        Remind users about active tests they have not completed. An attempt left
        open for more than 3 days counts as not started. Each (user, test)
        reminder is sent at most once per 7 days.
        """
        from exams.models import Test, Attempt

        now = now or timezone.now()
        tests = list(Test.objects.filter(active=True))
        created = 0

        for user in get_user_model().objects.filter(is_active=True, role='test_taker'):
            attempts = list(Attempt.objects.filter(user=user).values('test_id', 'status', 'start_time'))
            completed = {a['test_id'] for a in attempts if a['status'] == 'completed'}
            fresh_open = {
                a['test_id'] for a in attempts
                if a['status'] in ('not_started', 'in_progress', 'paused') and a['start_time'] >= now - STALE_ATTEMPT_AGE
            }
            recent_links = set(
                Notification.objects.filter(
                    user=user, type='test_reminder', created_at__gt=now - TEST_REMINDER_WINDOW
                ).values_list('action_link', flat=True)
            )

            for test in tests:
                link = f'/tests/{test.id}'
                if test.id in completed or test.id in fresh_open or link in recent_links:
                    continue
                NotificationService.create(
                    user,
                    'test_reminder',
                    'Test Reminder',
                    f'Do not forget to complete the "{test.title}" test. Regular practice improves your IELTS score.',
                    'medium',
                    link,
                )
                created += 1

        logger.info(f"Test reminders sent: {created}")
        return created

    # Inbox

    @staticmethod
    def list_for_user(user, unread_only=False, now=None):
        """Delivered notifications only (scheduled_for <= now), newest first"""
        queryset = Notification.objects.filter(user=user, scheduled_for__lte=now or timezone.now())
        if unread_only:
            queryset = queryset.filter(is_read=False)
        return queryset.order_by('-scheduled_for', '-created_at')

    @staticmethod
    def unread_count(user, now=None):
        return NotificationService.list_for_user(user, unread_only=True, now=now).count()

    @staticmethod
    def _get_own(user, notification_id):
        notification = Notification.objects.filter(id=notification_id, user=user).first()
        if notification is None:
            raise NotFoundError('Notification not found')
        return notification

    @staticmethod
    def mark_read(user, notification_id):
        notification = NotificationService._get_own(user, notification_id)
        notification.mark_as_read()
        return notification

    @staticmethod
    def mark_all_read(user):
        updated = Notification.objects.filter(
            user=user, is_read=False, scheduled_for__lte=timezone.now()
        ).update(is_read=True)
        logger.info(f"Marked {updated} notifications read for user {user.id}")
        return updated

    @staticmethod
    def delete(user, notification_id):
        notification = NotificationService._get_own(user, notification_id)
        notification.delete()
