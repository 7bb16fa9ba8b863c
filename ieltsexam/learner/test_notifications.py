"""
Notification inbox and reminder fan-out tests
"""
from datetime import timedelta
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APIClient, APITestCase

from exams.models import Test, Attempt
from .models import Notification, Vocabulary
from .services.notification_service import NotificationService, streak_message

UserProfile = get_user_model()


class StreakMessageTests(SimpleTestCase):

    def test_messages(self):
        self.assertEqual(streak_message(3)[0], '3-Day Streak!')
        self.assertEqual(streak_message(21)[0], '3-Week Streak!')
        self.assertEqual(streak_message(60)[0], '2-Month Streak!')
        self.assertIsNone(streak_message(5))


class ReminderTests(TestCase):

    def setUp(self):
        self.user = UserProfile.objects.create_user(username='maha', email='maha@example.com', password='strongpass1')
        self.now = timezone.now()

    def add_due_word(self):
        Vocabulary.objects.create(
            user=self.user, word='robust', cefr_level='B2', meaning='strong', next_review=self.now - timedelta(hours=1)
        )

    def test_review_reminder_once_per_day(self):
        self.add_due_word()

        self.assertEqual(NotificationService.send_review_reminders(now=self.now), 1)
        self.assertEqual(NotificationService.send_review_reminders(now=self.now + timedelta(hours=2)), 0)
        self.assertEqual(Notification.objects.filter(user=self.user, type='vocabulary_review').count(), 1)

    def test_no_review_reminder_without_due_words(self):
        Vocabulary.objects.create(
            user=self.user, word='later', cefr_level='B2', meaning='m', next_review=self.now + timedelta(days=2)
        )
        self.assertEqual(NotificationService.send_review_reminders(now=self.now), 0)

    def test_test_reminders(self):
        done = Test.objects.create(title='Done', module='reading', duration_minutes=60)
        fresh = Test.objects.create(title='Fresh', module='writing', duration_minutes=60)
        stale = Test.objects.create(title='Stale', module='listening', duration_minutes=30)
        todo = Test.objects.create(title='Todo', module='speaking', duration_minutes=15)
        Test.objects.create(title='Hidden', module='reading', duration_minutes=60, active=False)

        Attempt.objects.create(user=self.user, test=done, status='completed')
        Attempt.objects.create(user=self.user, test=fresh, status='in_progress', start_time=self.now - timedelta(days=1))
        Attempt.objects.create(user=self.user, test=stale, status='paused', start_time=self.now - timedelta(days=5))

        sent = NotificationService.send_test_reminders(now=self.now)

        links = set(Notification.objects.filter(user=self.user, type='test_reminder').values_list('action_link', flat=True))
        self.assertEqual(sent, 2)
        self.assertEqual(links, {f'/tests/{stale.id}', f'/tests/{todo.id}'})

        self.assertEqual(NotificationService.send_test_reminders(now=self.now + timedelta(days=1)), 0)

    def test_reminder_command(self):
        self.add_due_word()
        out = StringIO()

        call_command('send_study_reminders', '--reviews-only', stdout=out)

        self.assertIn('1 vocabulary review reminders sent', out.getvalue())
        self.assertFalse(Notification.objects.filter(type='test_reminder').exists())


class NotificationAPITests(APITestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = UserProfile.objects.create_user(username='ola', email='ola@example.com', password='strongpass1')
        self.other = UserProfile.objects.create_user(username='tarek', email='tarek@example.com', password='strongpass1')
        self.client.force_authenticate(self.user)

        self.first = NotificationService.create(self.user, 'system', 'Welcome', 'Hello')
        self.second = NotificationService.create(self.user, 'achievement', 'Badge', 'You earned it', 'high')
        NotificationService.create(
            self.user, 'system', 'Later', 'Not yet', scheduled_for=timezone.now() + timedelta(days=1)
        )

    def test_list_hides_scheduled_notifications(self):
        response = self.client.get('/api/notifications/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual({n['title'] for n in response.data}, {'Welcome', 'Badge'})

    def test_unread_count_and_mark_read(self):
        self.assertEqual(self.client.get('/api/notifications/unread-count/').data['count'], 2)

        response = self.client.patch(f'/api/notifications/{self.first.id}/read/')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['isRead'])

        self.assertEqual(self.client.get('/api/notifications/unread-count/').data['count'], 1)
        self.assertEqual(len(self.client.get('/api/notifications/?unread=true').data), 1)

    def test_mark_all_read(self):
        response = self.client.post('/api/notifications/mark-all-read/')

        self.assertEqual(response.data['updated'], 2)
        self.assertEqual(NotificationService.unread_count(self.user), 0)

    def test_delete(self):
        response = self.client.delete(f'/api/notifications/{self.second.id}/')

        self.assertEqual(response.status_code, 204)
        self.assertFalse(Notification.objects.filter(id=self.second.id).exists())

    def test_other_users_notifications_are_not_found(self):
        theirs = NotificationService.create(self.other, 'system', 'Private', 'Secret')

        self.assertEqual(self.client.patch(f'/api/notifications/{theirs.id}/read/').status_code, 404)
        self.assertEqual(self.client.delete(f'/api/notifications/{theirs.id}/').status_code, 404)
        self.assertTrue(Notification.objects.filter(id=theirs.id).exists())
