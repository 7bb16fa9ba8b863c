"""
Accounts models - test takers, admins and one-time codes
"""
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone
import uuid


class UserProfile(AbstractUser):
    """Platform user. Never hard-deleted; deactivate with is_active instead."""
    ROLE_CHOICES = [('test_taker', 'Test Taker'), ('admin', 'Admin')]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='test_taker')
    verified = models.BooleanField(default=False)

    class Meta:
        db_table = 'users'
        ordering = ['date_joined']

    @property
    def is_admin(self):
        return self.role == 'admin'

    def save(self, *args, **kwargs):
        # Superusers created from the CLI are platform admins too
        if self.is_superuser:
            self.role = 'admin'
        self.is_staff = self.role == 'admin'
        super().save(*args, **kwargs)

    def __str__(self):
        return self.username


class OneTimeCode(models.Model):
    """Short-lived numeric code for email verification or password reset"""
    PURPOSE_CHOICES = [
        ('email_verification', 'Email Verification'),
        ('password_reset', 'Password Reset'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name='one_time_codes')
    purpose = models.CharField(max_length=30, choices=PURPOSE_CHOICES)
    code_hash = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    consumed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'one_time_codes'
        ordering = ['-created_at']

    def is_expired(self, now=None):
        return (now or timezone.now()) >= self.expires_at

    def __str__(self):
        return f"{self.purpose} code for {self.user_id}"
