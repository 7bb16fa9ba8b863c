"""
Spaced-repetition vocabulary tests
"""
from datetime import timedelta
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APIClient, APITestCase

from ieltsexam.exceptions import AuthorizationError, ValidationError
from .models import Vocabulary, UserAchievement, PointHistory
from .services.vocabulary_service import VocabularyService, schedule_review, INTERVAL_DAYS

UserProfile = get_user_model()

WORD = {'word': 'ubiquitous', 'cefr_level': 'C1', 'meaning': 'found everywhere', 'example': 'Phones are ubiquitous.'}


class ScheduleReviewTests(SimpleTestCase):

    def setUp(self):
        self.now = timezone.now()

    def test_high_rating_moves_up_one_stage(self):
        for rating in (4, 5):
            stage, due = schedule_review(2, rating, self.now)
            self.assertEqual(stage, 3)
            self.assertEqual(due, self.now + timedelta(days=14))

    def test_low_rating_resets(self):
        for rating in (1, 2):
            stage, due = schedule_review(4, rating, self.now)
            self.assertEqual(stage, 0)
            self.assertEqual(due, self.now + timedelta(days=1))

    def test_middle_rating_keeps_stage(self):
        stage, due = schedule_review(3, 3, self.now)
        self.assertEqual(stage, 3)
        self.assertEqual(due, self.now + timedelta(days=14))

    def test_five_perfect_reviews_reach_stage_five_and_stay(self):
        stage = 0
        for _ in range(5):
            stage, _due = schedule_review(stage, 5, self.now)
        self.assertEqual(stage, 5)

        stage, due = schedule_review(stage, 5, self.now)
        self.assertEqual(stage, 5)
        self.assertEqual(due, self.now + timedelta(days=90))

    def test_intervals_strictly_increase(self):
        days = [INTERVAL_DAYS[stage] for stage in range(6)]
        self.assertEqual(days, sorted(set(days)))

    def test_rating_out_of_range(self):
        for rating in (0, 6, '5', 4.5, None):
            with self.assertRaises(ValidationError):
                schedule_review(0, rating, self.now)


class VocabularyServiceTests(TestCase):

    def setUp(self):
        self.user = UserProfile.objects.create_user(username='reem', email='reem@example.com', password='strongpass1')
        self.other = UserProfile.objects.create_user(username='sami', email='sami@example.com', password='strongpass1')

    def test_add_word_seeds_first_review(self):
        now = timezone.now()
        word = VocabularyService.add_word(self.user, WORD, now=now)

        self.assertEqual(word.review_stage, 0)
        self.assertEqual(word.next_review, now + timedelta(hours=24))
        achievement = UserAchievement.objects.get(user=self.user)
        self.assertEqual(achievement.vocabulary_added, 1)
        self.assertEqual(achievement.total_points, 2)

    def test_review_updates_stage_and_counters(self):
        word = VocabularyService.add_word(self.user, WORD)
        now = timezone.now()

        word = VocabularyService.review_word(self.user, word.id, 5, now=now)

        self.assertEqual(word.review_stage, 1)
        self.assertEqual(word.last_reviewed, now)
        self.assertEqual(word.next_review, now + timedelta(days=3))
        self.assertEqual(UserAchievement.objects.get(user=self.user).vocabulary_reviewed, 1)
        self.assertTrue(PointHistory.objects.filter(user=self.user, action_type='vocabulary_review').exists())

    def test_cannot_review_someone_elses_word(self):
        word = VocabularyService.add_word(self.other, WORD)
        with self.assertRaises(AuthorizationError):
            VocabularyService.review_word(self.user, word.id, 5)

    def test_due_list_excludes_future_and_orders_by_stage(self):
        now = timezone.now()
        VocabularyService.add_word(self.user, WORD)
        late = Vocabulary.objects.create(user=self.user, word='late', cefr_level='B1', meaning='m',
                                         review_stage=3, next_review=now - timedelta(days=2))
        early = Vocabulary.objects.create(user=self.user, word='early', cefr_level='B1', meaning='m',
                                          review_stage=1, next_review=now - timedelta(hours=1))
        older = Vocabulary.objects.create(user=self.user, word='older', cefr_level='B1', meaning='m',
                                          review_stage=1, next_review=now - timedelta(days=3))
        Vocabulary.objects.create(user=self.other, word='theirs', cefr_level='B1', meaning='m',
                                  review_stage=0, next_review=now - timedelta(days=1))

        due = VocabularyService.due_for_review(self.user, now=now)

        self.assertEqual([w.id for w in due], [older.id, early.id, late.id])
        self.assertTrue(all(w.next_review <= now for w in due))
        self.assertEqual(len(VocabularyService.due_for_review(self.user, limit=1, now=now)), 1)

    def test_analyze_uses_ai_client(self):
        client = MagicMock()
        client.analyze_vocabulary.return_value = {'word': 'resilient', 'cefrLevel': 'C1'}

        result = VocabularyService.analyze('  resilient ', client=client)

        client.analyze_vocabulary.assert_called_once_with('resilient')
        self.assertEqual(result['cefrLevel'], 'C1')


class VocabularyAPITests(APITestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = UserProfile.objects.create_user(username='dina', email='dina@example.com', password='strongpass1')
        self.other = UserProfile.objects.create_user(username='fadi', email='fadi@example.com', password='strongpass1')
        self.client.force_authenticate(self.user)

    def add(self, **overrides):
        payload = {'word': 'mitigate', 'cefrLevel': 'C1', 'meaning': 'make less severe', 'example': 'Trees mitigate heat.'}
        payload.update(overrides)
        return self.client.post('/api/vocabulary/', payload, format='json')

    def test_add_and_list(self):
        response = self.add(arabicMeaning='يخفف')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['reviewStage'], 0)
        self.assertEqual(response.data['arabicMeaning'], 'يخفف')

        self.add(word='cat', cefrLevel='A1', meaning='animal')
        self.assertEqual(len(self.client.get('/api/vocabulary/').data), 2)
        self.assertEqual(len(self.client.get('/api/vocabulary/?cefrLevel=a1').data), 1)

    def test_invalid_cefr_level(self):
        response = self.add(cefrLevel='D1')
        self.assertEqual(response.status_code, 400)
        self.assertIn('cefrLevel', response.data['fields'])

    def test_review_endpoint(self):
        word_id = self.add().data['id']

        response = self.client.patch(f'/api/vocabulary/{word_id}/review/', {'knowledgeRating': 4}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['reviewStage'], 1)

    def test_review_rating_validated(self):
        word_id = self.add().data['id']
        response = self.client.patch(f'/api/vocabulary/{word_id}/review/', {'knowledgeRating': 9}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_due_list_endpoint(self):
        self.add()
        Vocabulary.objects.update(next_review=timezone.now() - timedelta(minutes=1))

        response = self.client.get('/api/vocabulary/review/?limit=5')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)

    def test_update_and_delete_own_word(self):
        word_id = self.add().data['id']

        updated = self.client.patch(f'/api/vocabulary/{word_id}/', {'meaning': 'reduce harm'}, format='json')
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.data['meaning'], 'reduce harm')

        deleted = self.client.delete(f'/api/vocabulary/{word_id}/')
        self.assertEqual(deleted.status_code, 204)
        self.assertFalse(Vocabulary.objects.filter(id=word_id).exists())

    def test_other_users_word_is_forbidden(self):
        word = VocabularyService.add_word(self.other, WORD)
        response = self.client.delete(f'/api/vocabulary/{word.id}/')
        self.assertEqual(response.status_code, 403)

    @patch('learner.services.vocabulary_service.AIScoringClient')
    def test_analyze_endpoint(self, client_class):
        client_class.return_value.analyze_vocabulary.return_value = {
            'word': 'ephemeral', 'cefrLevel': 'C2', 'meaning': 'short-lived',
            'wordFamily': 'ephemerality', 'example': 'Fame is ephemeral.', 'arabicMeaning': 'زائل',
        }

        response = self.client.post('/api/vocabulary/analyze/', {'word': 'ephemeral'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['cefrLevel'], 'C2')
