"""
Exams app models - test content, attempts and answers
"""
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
import uuid


MODULE_CHOICES = [
    ('reading', 'Reading'),
    ('listening', 'Listening'),
    ('writing', 'Writing'),
    ('speaking', 'Speaking'),
]


class Test(models.Model):
    """A timed practice test for one IELTS module"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    module = models.CharField(max_length=20, choices=MODULE_CHOICES)
    duration_minutes = models.PositiveIntegerField()
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'tests'
        ordering = ['module', 'created_at']

    @property
    def duration_seconds(self):
        return self.duration_minutes * 60

    def __str__(self):
        return f"{self.title} ({self.module})"


class Passage(models.Model):
    """Reading passage or listening section transcript"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name='passages')
    title = models.CharField(max_length=255)
    content = models.TextField()
    index = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'passages'
        ordering = ['index']

    def __str__(self):
        return self.title


class Question(models.Model):
    QUESTION_TYPE_CHOICES = [
        ('multiple_choice', 'Multiple Choice'),
        ('true_false_ng', 'True / False / Not Given'),
        ('fill_blank', 'Fill in the Blank'),
        ('matching', 'Matching'),
        ('short_answer', 'Short Answer'),
        ('essay', 'Essay'),
        ('speaking', 'Speaking'),
    ]
    # Graded by string match; matching uses a JSON answer key
    AUTO_GRADED_TYPES = ('multiple_choice', 'true_false_ng', 'fill_blank', 'short_answer', 'matching')
    OPEN_TYPES = ('essay', 'speaking')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name='questions')
    type = models.CharField(max_length=30, choices=QUESTION_TYPE_CHOICES)
    content = models.TextField()
    options = models.JSONField(null=True, blank=True)
    correct_answer = models.TextField(null=True, blank=True)
    passage_index = models.PositiveIntegerField(null=True, blank=True)
    audio_path = models.CharField(max_length=500, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'questions'
        ordering = ['created_at']

    @property
    def is_open(self):
        return self.type in self.OPEN_TYPES

    def __str__(self):
        return self.content[:50]


class Attempt(models.Model):
    """
    One user's timed run through one test.
    At most one in_progress/paused attempt per (user, test).
    """
    STATUS_CHOICES = [
        ('not_started', 'Not Started'),
        ('in_progress', 'In Progress'),
        ('paused', 'Paused'),
        ('completed', 'Completed'),
        ('timed_out', 'Timed Out'),
    ]
    ACTIVE_STATUSES = ('in_progress', 'paused')
    TERMINAL_STATUSES = ('completed', 'timed_out')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='attempts')
    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name='attempts')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='not_started')
    start_time = models.DateTimeField(default=timezone.now)
    end_time = models.DateTimeField(null=True, blank=True)
    score = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = 'attempts'
        ordering = ['-start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'test'],
                condition=Q(status__in=['in_progress', 'paused']),
                name='one_active_attempt_per_user_test',
            ),
        ]

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def __str__(self):
        return f"{self.user_id} - {self.test_id} ({self.status})"


class Answer(models.Model):
    AI_STATUS_CHOICES = [
        ('none', 'None'),
        ('queued', 'Queued'),
        ('scored', 'Scored'),
        ('failed', 'Failed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    attempt = models.ForeignKey(Attempt, on_delete=models.CASCADE, related_name='answers')
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='answers')
    answer = models.TextField(blank=True, default='')
    is_correct = models.BooleanField(null=True, blank=True)
    score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    audio_path = models.CharField(max_length=500, null=True, blank=True)
    feedback = models.TextField(null=True, blank=True)
    criteria_scores = models.JSONField(null=True, blank=True)
    ai_status = models.CharField(max_length=10, choices=AI_STATUS_CHOICES, default='none')
    # null means auto or AI graded
    graded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='graded_answers'
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'answers'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['attempt', 'question'], name='one_answer_per_question'),
        ]

    def __str__(self):
        return f"Answer {self.id} ({self.question.type})"
