from django.contrib import admin

from .models import Vocabulary, Badge, UserLevel, UserAchievement, UserBadge, PointHistory, Notification


@admin.register(Vocabulary)
class VocabularyAdmin(admin.ModelAdmin):
    list_display = ['word', 'user', 'cefr_level', 'review_stage', 'next_review']
    list_filter = ['cefr_level', 'review_stage']
    search_fields = ['word', 'user__username']


@admin.register(Badge)
class BadgeAdmin(admin.ModelAdmin):
    list_display = ['name', 'badge_type', 'rarity', 'module_type', 'required_count', 'required_score', 'is_active']
    list_filter = ['badge_type', 'rarity', 'is_active']


@admin.register(UserLevel)
class UserLevelAdmin(admin.ModelAdmin):
    list_display = ['level', 'name', 'required_points', 'badge']


@admin.register(UserAchievement)
class UserAchievementAdmin(admin.ModelAdmin):
    list_display = ['user', 'total_points', 'current_level', 'login_streak', 'tests_completed']
    search_fields = ['user__username']


@admin.register(UserBadge)
class UserBadgeAdmin(admin.ModelAdmin):
    list_display = ['user', 'badge', 'times_earned', 'earned_at']


@admin.register(PointHistory)
class PointHistoryAdmin(admin.ModelAdmin):
    list_display = ['user', 'action_type', 'points_awarded', 'created_at']
    list_filter = ['action_type']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'title', 'priority', 'is_read', 'scheduled_for']
    list_filter = ['type', 'priority', 'is_read']
