"""
Learner app models - vocabulary, achievements, badges, points and notifications
"""
from django.conf import settings
from django.db import models
from django.utils import timezone
import uuid


CEFR_CHOICES = [
    ('A1', 'A1'), ('A2', 'A2'),
    ('B1', 'B1'), ('B2', 'B2'),
    ('C1', 'C1'), ('C2', 'C2'),
]


class Vocabulary(models.Model):
    """A word in a user's spaced-repetition list"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='vocabulary')
    word = models.CharField(max_length=100)
    cefr_level = models.CharField(max_length=2, choices=CEFR_CHOICES)
    word_family = models.CharField(max_length=255, blank=True, default='')
    meaning = models.TextField()
    example = models.TextField(blank=True, default='')
    arabic_meaning = models.TextField(blank=True, default='')
    review_stage = models.PositiveIntegerField(default=0)
    last_reviewed = models.DateTimeField(null=True, blank=True)
    next_review = models.DateTimeField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'vocabulary'
        ordering = ['-created_at']
        indexes = [models.Index(fields=['user', 'next_review'], name='vocabulary_user_due_idx')]

    def __str__(self):
        return f"{self.word} ({self.cefr_level})"


class Badge(models.Model):
    """Badge catalog entry. module_type names the UserAchievement counter checked against the threshold."""
    BADGE_TYPE_CHOICES = [
        ('streak', 'Streak'),
        ('tests', 'Tests'),
        ('vocabulary', 'Vocabulary'),
        ('score', 'Score'),
        ('level', 'Level'),
        ('special', 'Special'),
    ]
    RARITY_CHOICES = [
        ('common', 'Common'),
        ('uncommon', 'Uncommon'),
        ('rare', 'Rare'),
        ('epic', 'Epic'),
        ('legendary', 'Legendary'),
    ]
    MODULE_TYPE_CHOICES = [
        ('tests_completed', 'Tests Completed'),
        ('vocabulary_added', 'Vocabulary Added'),
        ('vocabulary_reviewed', 'Vocabulary Reviewed'),
        ('login_streak', 'Login Streak'),
        ('total_points', 'Total Points'),
        ('highest_score', 'Highest Score'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default='')
    badge_type = models.CharField(max_length=20, choices=BADGE_TYPE_CHOICES)
    rarity = models.CharField(max_length=20, choices=RARITY_CHOICES, default='common')
    image_url = models.CharField(max_length=500, blank=True, default='')
    module_type = models.CharField(max_length=30, choices=MODULE_TYPE_CHOICES, null=True, blank=True)
    required_count = models.PositiveIntegerField(null=True, blank=True)
    required_score = models.PositiveIntegerField(null=True, blank=True)
    repeatable = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'badges'
        ordering = ['badge_type', 'required_count', 'name']

    @property
    def threshold(self):
        if self.module_type == 'highest_score':
            return self.required_score
        return self.required_count

    def __str__(self):
        return self.name


class UserLevel(models.Model):
    level = models.PositiveIntegerField(unique=True)
    name = models.CharField(max_length=100)
    required_points = models.PositiveIntegerField()
    badge = models.ForeignKey(Badge, on_delete=models.SET_NULL, null=True, blank=True, related_name='levels')

    class Meta:
        db_table = 'user_levels'
        ordering = ['level']

    def __str__(self):
        return f"Level {self.level}: {self.name}"


class UserAchievement(models.Model):
    """One row per user; running counters for points, levels and badges"""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='achievement')
    total_points = models.PositiveIntegerField(default=0)
    current_level = models.PositiveIntegerField(default=1)
    login_streak = models.PositiveIntegerField(default=0)
    last_login_date = models.DateField(null=True, blank=True)
    tests_completed = models.PositiveIntegerField(default=0)
    vocabulary_added = models.PositiveIntegerField(default=0)
    vocabulary_reviewed = models.PositiveIntegerField(default=0)
    highest_score = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user_achievements'

    def __str__(self):
        return f"{self.user_id}: {self.total_points} pts (level {self.current_level})"


class UserBadge(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='badges')
    badge = models.ForeignKey(Badge, on_delete=models.CASCADE, related_name='holders')
    times_earned = models.PositiveIntegerField(default=1)
    earned_at = models.DateTimeField(default=timezone.now)
    last_earned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'user_badges'
        ordering = ['-earned_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'badge'], name='one_user_badge_per_badge'),
        ]


class PointHistory(models.Model):
    """Append-only ledger of point awards"""
    ACTION_TYPE_CHOICES = [
        ('login_streak', 'Login Streak'),
        ('test_completion', 'Test Completion'),
        ('test_score', 'Test Score'),
        ('first_test', 'First Test'),
        ('perfect_score', 'Perfect Score'),
        ('vocabulary_add', 'Vocabulary Added'),
        ('vocabulary_review', 'Vocabulary Reviewed'),
        ('feedback_given', 'Feedback Given'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='point_history')
    action_type = models.CharField(max_length=30, choices=ACTION_TYPE_CHOICES)
    points_awarded = models.PositiveIntegerField()
    related_entity_type = models.CharField(max_length=50, null=True, blank=True)
    related_entity_id = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'point_history'
        ordering = ['-created_at']


class Notification(models.Model):
    """Per-user inbox entry"""
    NOTIFICATION_TYPE_CHOICES = [
        ('vocabulary_review', 'Vocabulary Review'),
        ('test_reminder', 'Test Reminder'),
        ('achievement', 'Achievement'),
        ('system', 'System'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=30, choices=NOTIFICATION_TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    is_read = models.BooleanField(default=False)
    action_link = models.CharField(max_length=500, null=True, blank=True)
    scheduled_for = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'notifications'
        ordering = ['-scheduled_for', '-created_at']
        indexes = [models.Index(fields=['user', 'is_read'], name='notifications_user_read_idx')]

    def mark_as_read(self):
        """Mark notification as read"""
        if not self.is_read:
            self.is_read = True
            self.save(update_fields=['is_read'])

    def __str__(self):
        return f"{self.type}: {self.title}"
