"""
Points, levels, badges and login streak tests
"""
from datetime import timedelta
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APIClient, APITestCase

from ieltsexam.exceptions import ValidationError
from .models import Badge, UserLevel, UserAchievement, UserBadge, PointHistory, Notification
from .services.gamification_service import GamificationService, is_streak_milestone

UserProfile = get_user_model()


class StreakMilestoneTests(SimpleTestCase):

    def test_milestones(self):
        milestones = [day for day in range(1, 64) if is_streak_milestone(day)]
        self.assertEqual(milestones, [3, 7, 14, 21, 28, 30, 35, 42, 49, 56, 60, 63])


class GamificationServiceTests(TestCase):

    def setUp(self):
        self.user = UserProfile.objects.create_user(username='huda', email='huda@example.com', password='strongpass1')
        self.level_badge = Badge.objects.create(name='Novice Badge', badge_type='level', rarity='common')
        UserLevel.objects.create(level=1, name='Beginner', required_points=0)
        UserLevel.objects.create(level=2, name='Novice', required_points=100, badge=self.level_badge)
        UserLevel.objects.create(level=3, name='Apprentice', required_points=250)

    def achievement(self):
        return UserAchievement.objects.get(user=self.user)

    def test_award_points_appends_history(self):
        GamificationService.award_points(self.user, 'feedback_given')
        GamificationService.award_points(self.user, 'test_score', points=40)

        self.assertEqual(self.achievement().total_points, 45)
        self.assertEqual(
            sorted(PointHistory.objects.filter(user=self.user).values_list('points_awarded', flat=True)), [5, 40]
        )

    def test_totals_are_linear_in_awards(self):
        for _ in range(7):
            GamificationService.award_points(self.user, 'vocabulary_add')
        self.assertEqual(self.achievement().total_points, 14)

    def test_unknown_action_or_missing_amount(self):
        with self.assertRaises(ValidationError):
            GamificationService.award_points(self.user, 'bribery')
        with self.assertRaises(ValidationError):
            GamificationService.award_points(self.user, 'test_score')

    def test_level_up_happens_exactly_once_at_boundary(self):
        GamificationService.award_points(self.user, 'test_score', points=99)
        self.assertEqual(self.achievement().current_level, 1)

        GamificationService.award_points(self.user, 'vocabulary_review')
        GamificationService.award_points(self.user, 'vocabulary_review')

        self.assertEqual(self.achievement().current_level, 2)
        self.assertEqual(Notification.objects.filter(user=self.user, title__startswith='Level Up').count(), 1)
        self.assertEqual(UserBadge.objects.filter(user=self.user, badge=self.level_badge).count(), 1)

    def test_big_award_skips_to_highest_level(self):
        GamificationService.award_points(self.user, 'test_score', points=300)
        self.assertEqual(self.achievement().current_level, 3)

    def test_counter_badge_awarded_once(self):
        badge = Badge.objects.create(
            name='First Test', badge_type='tests', module_type='tests_completed', required_count=1
        )
        GamificationService.record_test_completion(self.user, 40)
        GamificationService.record_test_completion(self.user, 60)

        user_badge = UserBadge.objects.get(user=self.user, badge=badge)
        self.assertEqual(user_badge.times_earned, 1)
        self.assertEqual(Notification.objects.filter(user=self.user, title='Achievement Unlocked: First Test').count(), 1)

    def test_inactive_badges_are_skipped(self):
        Badge.objects.create(
            name='Retired', badge_type='tests', module_type='tests_completed', required_count=1, is_active=False
        )
        GamificationService.record_test_completion(self.user, 40)
        self.assertFalse(UserBadge.objects.filter(user=self.user, badge__name='Retired').exists())

    def test_highest_score_badge_uses_required_score(self):
        badge = Badge.objects.create(
            name='High Achiever', badge_type='score', module_type='highest_score', required_score=80
        )
        GamificationService.record_test_completion(self.user, 70)
        self.assertFalse(UserBadge.objects.filter(user=self.user, badge=badge).exists())

        GamificationService.record_test_completion(self.user, 85)
        self.assertTrue(UserBadge.objects.filter(user=self.user, badge=badge).exists())

    def test_perfect_score_badge_repeats(self):
        badge = Badge.objects.create(name='Perfect Score', badge_type='score', repeatable=True, required_score=100)

        GamificationService.record_test_completion(self.user, 100)
        GamificationService.record_test_completion(self.user, 100)

        self.assertEqual(UserBadge.objects.get(user=self.user, badge=badge).times_earned, 2)
        self.assertEqual(PointHistory.objects.filter(user=self.user, action_type='perfect_score').count(), 2)

    def test_test_completion_points(self):
        GamificationService.record_test_completion(self.user, 60)

        achievement = self.achievement()
        # completion 20 + score 60 + first test 25
        self.assertEqual(achievement.total_points, 105)
        self.assertEqual(achievement.tests_completed, 1)
        self.assertEqual(achievement.highest_score, 60)

    def test_ungraded_completion_counts_without_score(self):
        GamificationService.record_test_completion(self.user, None)

        achievement = self.achievement()
        self.assertEqual(achievement.tests_completed, 1)
        self.assertEqual(achievement.highest_score, 0)
        self.assertFalse(PointHistory.objects.filter(user=self.user, action_type='test_score').exists())

    def test_first_login_starts_streak(self):
        achievement, milestone = GamificationService.update_login_streak(self.user)
        self.assertEqual(achievement.login_streak, 1)
        self.assertFalse(milestone)

    def test_same_day_login_is_noop(self):
        now = timezone.now()
        GamificationService.update_login_streak(self.user, now=now)
        achievement, milestone = GamificationService.update_login_streak(self.user, now=now)

        self.assertEqual(achievement.login_streak, 1)
        self.assertFalse(milestone)

    def test_seventh_day_is_a_milestone(self):
        now = timezone.now()
        GamificationService.get_or_create_achievement(self.user)
        UserAchievement.objects.filter(user=self.user).update(
            login_streak=6, last_login_date=timezone.localdate(now) - timedelta(days=1)
        )

        achievement, milestone = GamificationService.update_login_streak(self.user, now=now)

        self.assertTrue(milestone)
        self.assertEqual(achievement.login_streak, 7)
        self.assertEqual(achievement.total_points, 10)
        self.assertTrue(Notification.objects.filter(user=self.user, title='1-Week Streak!').exists())
        self.assertTrue(PointHistory.objects.filter(user=self.user, action_type='login_streak').exists())

    def test_gap_resets_streak(self):
        now = timezone.now()
        GamificationService.get_or_create_achievement(self.user)
        UserAchievement.objects.filter(user=self.user).update(
            login_streak=12, last_login_date=timezone.localdate(now) - timedelta(days=3)
        )

        achievement, milestone = GamificationService.update_login_streak(self.user, now=now)

        self.assertEqual(achievement.login_streak, 1)
        self.assertFalse(milestone)
        self.assertEqual(achievement.total_points, 0)

    def test_streak_badge_on_milestone(self):
        badge = Badge.objects.create(
            name='Getting Started', badge_type='streak', module_type='login_streak', required_count=3
        )
        now = timezone.now()
        GamificationService.get_or_create_achievement(self.user)
        UserAchievement.objects.filter(user=self.user).update(
            login_streak=2, last_login_date=timezone.localdate(now) - timedelta(days=1)
        )

        GamificationService.update_login_streak(self.user, now=now)

        self.assertTrue(UserBadge.objects.filter(user=self.user, badge=badge).exists())

    def test_summary_level_progress(self):
        GamificationService.award_points(self.user, 'test_score', points=175)

        summary = GamificationService.summary(self.user)

        self.assertEqual(summary['current_level'].level, 2)
        self.assertEqual(summary['next_level'].level, 3)
        self.assertEqual(summary['level_progress'], 50)

    def test_leaderboard_orders_by_points(self):
        rival = UserProfile.objects.create_user(username='karim', email='karim@example.com', password='strongpass1')
        GamificationService.award_points(self.user, 'test_score', points=30)
        GamificationService.award_points(rival, 'test_score', points=120)

        board = GamificationService.leaderboard(limit=10)

        self.assertEqual([row['username'] for row in board], ['karim', 'huda'])
        self.assertEqual(board[0]['rank'], 1)
        self.assertEqual(board[0]['levelName'], 'Novice')


class GamificationAPITests(APITestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = UserProfile.objects.create_user(username='rana', email='rana@example.com', password='strongpass1')
        self.client.force_authenticate(self.user)
        call_command('seed_gamification', stdout=StringIO())

    def test_seed_is_idempotent(self):
        call_command('seed_gamification', stdout=StringIO())
        self.assertEqual(UserLevel.objects.count(), 8)
        self.assertEqual(Badge.objects.filter(name='Perfect Score').count(), 1)

    def test_user_achievement(self):
        GamificationService.award_points(self.user, 'test_score', points=50)

        response = self.client.get('/api/gamification/user-achievement/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['achievement']['totalPoints'], 50)
        self.assertEqual(response.data['level']['name'], 'Beginner')
        self.assertEqual(response.data['nextLevel']['requiredPoints'], 100)
        self.assertEqual(response.data['levelProgress'], 50)
        self.assertEqual(len(response.data['recentPoints']), 1)

    def test_login_streak_endpoint(self):
        response = self.client.post('/api/gamification/login-streak/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['achievement']['loginStreak'], 1)
        self.assertFalse(response.data['milestone'])

    def test_badges_flag_earned(self):
        GamificationService.record_test_completion(self.user, 50)

        response = self.client.get('/api/gamification/badges/')

        earned = {badge['name'] for badge in response.data if badge['earned']}
        self.assertEqual(earned, {'First Test'})

    def test_points_history_and_leaderboard(self):
        GamificationService.award_points(self.user, 'feedback_given')

        history = self.client.get('/api/gamification/points-history/')
        self.assertEqual(history.data[0]['actionType'], 'feedback_given')

        board = self.client.get('/api/gamification/leaderboard/?limit=5')
        self.assertEqual(board.data[0]['totalPoints'], 5)

    def test_bad_limit(self):
        response = self.client.get('/api/gamification/leaderboard/?limit=lots')
        self.assertEqual(response.status_code, 400)
