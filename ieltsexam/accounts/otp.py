"""
One-time code service
Issues and checks single-use numeric codes with a short expiry.
"""
from datetime import timedelta
import logging
import secrets

from django.conf import settings
from django.contrib.auth.hashers import make_password, check_password
from django.db import transaction
from django.utils import timezone

from ieltsexam.exceptions import ValidationError
from .models import OneTimeCode

logger = logging.getLogger(__name__)


def generate_code(length=None):
    length = length or settings.OTP_LENGTH
    return ''.join(secrets.choice('0123456789') for _ in range(length))


class OneTimeCodeService:
    """Issue/verify codes for email verification and password reset"""

    @staticmethod
    def issue(user, purpose):
        """
        Create a fresh code and return its plain value.
        Earlier unconsumed codes for the same purpose stop being valid.
        """
        now = timezone.now()
        code = generate_code()
        with transaction.atomic():
            OneTimeCode.objects.filter(
                user=user, purpose=purpose, consumed_at__isnull=True
            ).update(consumed_at=now)
            OneTimeCode.objects.create(
                user=user,
                purpose=purpose,
                code_hash=make_password(code),
                created_at=now,
                expires_at=now + timedelta(seconds=settings.OTP_TTL_SECONDS),
            )
        logger.info(f"Issued {purpose} code for user {user.id}")
        return code

    @staticmethod
    def consume(user, purpose, code):
        """Mark the matching code used. Wrong or expired codes are a ValidationError."""
        if not code:
            raise ValidationError('Verification code is required', fields={'code': ['This field is required.']})

        otp = OneTimeCode.objects.filter(
            user=user, purpose=purpose, consumed_at__isnull=True
        ).order_by('-created_at').first()

        if otp is None or not check_password(str(code).strip(), otp.code_hash):
            logger.warning(f"Invalid {purpose} code submitted for user {user.id}")
            raise ValidationError('Invalid verification code', fields={'code': ['Invalid code.']})

        now = timezone.now()
        if otp.is_expired(now):
            raise ValidationError('Verification code has expired', fields={'code': ['Code expired.']})

        otp.consumed_at = now
        otp.save(update_fields=['consumed_at'])
        return otp
