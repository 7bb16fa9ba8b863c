"""
Gamification Service
Point ledger, level thresholds, badge qualification and login streaks.

Every point award runs inside a transaction holding the user's achievement
row lock, so concurrent awards for the same user are serialized.
"""
from django.db import transaction
from django.db.models import F
from django.utils import timezone
import logging

from ieltsexam.exceptions import ValidationError
from ..models import UserAchievement, UserLevel, Badge, UserBadge, PointHistory
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

POINT_VALUES = {
    'login_streak': 10,
    'test_completion': 20,
    'first_test': 25,
    'perfect_score': 50,
    'vocabulary_add': 2,
    'vocabulary_review': 1,
    'feedback_given': 5,
}
# Amount supplied by the caller (the percentage score)
VARIABLE_POINT_ACTIONS = ('test_score',)

PERFECT_SCORE_BADGE = 'Perfect Score'


def is_streak_milestone(days):
    return days > 0 and (days == 3 or days % 7 == 0 or days % 30 == 0)


class GamificationService:
    """Service for points, levels, badges and streaks"""

    @staticmethod
    def get_or_create_achievement(user):
        achievement, created = UserAchievement.objects.get_or_create(user=user)
        if created:
            logger.info(f"Created achievement record for user {user.id}")
        return achievement

    @staticmethod
    def _locked_achievement(user):
        """Achievement row locked for the rest of the current transaction"""
        GamificationService.get_or_create_achievement(user)
        return UserAchievement.objects.select_for_update().get(user=user)

    @staticmethod
    def point_value(action_type, points=None):
        if action_type in VARIABLE_POINT_ACTIONS:
            if points is None:
                raise ValidationError(f"'{action_type}' awards need an explicit amount")
            amount = int(points)
        elif action_type in POINT_VALUES:
            amount = POINT_VALUES[action_type] if points is None else int(points)
        else:
            raise ValidationError(f"Unknown action type '{action_type}'")
        if amount < 0:
            raise ValidationError('Point amounts cannot be negative')
        return amount

    @staticmethod
    def award_points(user, action_type, related_entity=None, points=None):
        """
        Append a point-history entry, add the amount to the running total,
        then run the level and badge checks.
        Returns (achievement, history_entry).
        """
        amount = GamificationService.point_value(action_type, points)

        with transaction.atomic():
            achievement = GamificationService._locked_achievement(user)
            UserAchievement.objects.filter(pk=achievement.pk).update(
                total_points=F('total_points') + amount,
                updated_at=timezone.now(),
            )
            achievement.refresh_from_db()

            entry = PointHistory.objects.create(
                user=user,
                action_type=action_type,
                points_awarded=amount,
                related_entity_type=related_entity._meta.model_name if related_entity is not None else None,
                related_entity_id=str(related_entity.pk) if related_entity is not None else None,
            )

            GamificationService.check_level(user, achievement)
            GamificationService.check_badges(user, achievement)

        logger.info(f"Awarded {amount} points ({action_type}) to user {user.id}; total {achievement.total_points}")
        return achievement, entry

    @staticmethod
    def check_level(user, achievement):
        """Advance to the highest level whose threshold is met; returns the new level or None"""
        level = UserLevel.objects.select_related('badge').filter(
            required_points__lte=achievement.total_points
        ).order_by('-level').first()

        if level is None or level.level <= achievement.current_level:
            return None

        achievement.current_level = level.level
        achievement.save(update_fields=['current_level', 'updated_at'])
        NotificationService.notify_level_up(user, level)
        logger.info(f"User {user.id} reached level {level.level} ({level.name})")

        if level.badge is not None and level.badge.is_active:
            GamificationService.award_badge(user, level.badge)
        return level

    @staticmethod
    def check_badges(user, achievement):
        """Award every active counter badge whose threshold is met and not yet held"""
        held = set(UserBadge.objects.filter(user=user).values_list('badge_id', flat=True))
        awarded = []
        for badge in Badge.objects.filter(is_active=True, module_type__isnull=False):
            if badge.id in held or badge.threshold is None:
                continue
            if getattr(achievement, badge.module_type) >= badge.threshold:
                GamificationService.award_badge(user, badge)
                awarded.append(badge)
        return awarded

    @staticmethod
    def award_badge(user, badge):
        """
        Grant a badge. Non-repeatable badges are granted once; repeatable ones
        bump times_earned. Returns (user_badge, changed).
        """
        now = timezone.now()
        with transaction.atomic():
            user_badge, created = UserBadge.objects.select_for_update().get_or_create(
                user=user, badge=badge, defaults={'earned_at': now, 'last_earned_at': now}
            )
            if not created:
                if not badge.repeatable:
                    return user_badge, False
                UserBadge.objects.filter(pk=user_badge.pk).update(
                    times_earned=F('times_earned') + 1, last_earned_at=now
                )
                user_badge.refresh_from_db()

        NotificationService.notify_badge_earned(user, badge, user_badge.times_earned)
        logger.info(f"User {user.id} earned badge '{badge.name}' (x{user_badge.times_earned})")
        return user_badge, True

    @staticmethod
    def update_login_streak(user, now=None):
        """
        Compare today's calendar date with the last login date:
        same day is a no-op, the next day extends the streak, anything later resets it to 1.
        Returns (achievement, milestone_reached).
        """
        today = timezone.localdate(now or timezone.now())

        with transaction.atomic():
            achievement = GamificationService._locked_achievement(user)
            last = achievement.last_login_date
            milestone = False

            if last is not None and (today - last).days <= 0:
                return achievement, False
            if last is not None and (today - last).days == 1:
                achievement.login_streak += 1
                milestone = is_streak_milestone(achievement.login_streak)
            else:
                achievement.login_streak = 1

            achievement.last_login_date = today
            achievement.save(update_fields=['login_streak', 'last_login_date', 'updated_at'])

            if milestone:
                NotificationService.notify_streak_milestone(user, achievement.login_streak)
                achievement, _ = GamificationService.award_points(user, 'login_streak')
            else:
                GamificationService.check_badges(user, achievement)

        logger.info(f"User {user.id} login streak is {achievement.login_streak}")
        return achievement, milestone

    @staticmethod
    def record_test_completion(user, percentage, attempt=None):
        """
        Count a completed test and award completion points.
        percentage is the 0-100 result, or None when nothing is graded yet.
        """
        with transaction.atomic():
            achievement = GamificationService._locked_achievement(user)
            first_test = achievement.tests_completed == 0
            achievement.tests_completed += 1
            if percentage is not None and percentage > achievement.highest_score:
                achievement.highest_score = percentage
            achievement.save(update_fields=['tests_completed', 'highest_score', 'updated_at'])

            GamificationService.award_points(user, 'test_completion', attempt)
            if percentage:
                GamificationService.award_points(user, 'test_score', attempt, points=percentage)
            if first_test:
                GamificationService.award_points(user, 'first_test', attempt)
            if percentage == 100:
                GamificationService.award_points(user, 'perfect_score', attempt)
                badge = Badge.objects.filter(name=PERFECT_SCORE_BADGE, is_active=True).first()
                if badge is not None:
                    GamificationService.award_badge(user, badge)

        return UserAchievement.objects.get(user=user)

    @staticmethod
    def record_vocabulary_addition(user, vocabulary=None):
        with transaction.atomic():
            GamificationService._locked_achievement(user)
            UserAchievement.objects.filter(user=user).update(vocabulary_added=F('vocabulary_added') + 1)
            return GamificationService.award_points(user, 'vocabulary_add', vocabulary)[0]

    @staticmethod
    def record_vocabulary_review(user, vocabulary=None):
        with transaction.atomic():
            GamificationService._locked_achievement(user)
            UserAchievement.objects.filter(user=user).update(vocabulary_reviewed=F('vocabulary_reviewed') + 1)
            return GamificationService.award_points(user, 'vocabulary_review', vocabulary)[0]

    @staticmethod
    def level_progress(achievement):
        """(current_level, next_level, percent towards next level)"""
        current = UserLevel.objects.filter(level=achievement.current_level).first()
        next_level = UserLevel.objects.filter(level__gt=achievement.current_level).order_by('level').first()
        if next_level is None:
            return current, None, 100
        floor = current.required_points if current else 0
        span = next_level.required_points - floor
        if span <= 0:
            return current, next_level, 100
        gained = achievement.total_points - floor
        return current, next_level, min(100, max(0, round(gained * 100 / span)))

    @staticmethod
    def serialize_achievement(achievement):
        return {
            'totalPoints': achievement.total_points,
            'currentLevel': achievement.current_level,
            'loginStreak': achievement.login_streak,
            'lastLoginDate': achievement.last_login_date.isoformat() if achievement.last_login_date else None,
            'testsCompleted': achievement.tests_completed,
            'vocabularyAdded': achievement.vocabulary_added,
            'vocabularyReviewed': achievement.vocabulary_reviewed,
            'highestScore': achievement.highest_score,
        }

    @staticmethod
    def summary(user, history_limit=10):
        achievement = GamificationService.get_or_create_achievement(user)
        current, next_level, progress = GamificationService.level_progress(achievement)
        badges = UserBadge.objects.select_related('badge').filter(user=user)
        history = PointHistory.objects.filter(user=user).order_by('-created_at')[:history_limit]
        return {
            'achievement': achievement,
            'current_level': current,
            'next_level': next_level,
            'level_progress': progress,
            'badges': list(badges),
            'recent_points': list(history),
        }

    @staticmethod
    def leaderboard(limit=10):
        rows = UserAchievement.objects.select_related('user').filter(
            user__is_active=True
        ).order_by('-total_points', 'updated_at')[:limit]
        level_names = dict(UserLevel.objects.values_list('level', 'name'))
        return [
            {
                'rank': rank,
                'userId': str(row.user_id),
                'username': row.user.username,
                'totalPoints': row.total_points,
                'currentLevel': row.current_level,
                'levelName': level_names.get(row.current_level, 'Unknown Level'),
                'testsCompleted': row.tests_completed,
                'loginStreak': row.login_streak,
            }
            for rank, row in enumerate(rows, 1)
        ]
