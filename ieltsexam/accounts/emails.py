"""
Transactional email
Verification and password reset codes, sent through Django's mail backend.
"""
from django.conf import settings
from django.core.mail import send_mail
import logging

from ieltsexam.exceptions import UpstreamError

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = 'IELTS Exam - Verify Your Email'
PASSWORD_RESET_SUBJECT = 'IELTS Exam - Password Reset'

VERIFICATION_TEXT = """Verify Your Email Address

Thank you for registering with IELTS Exam Platform. To complete your registration, please use the following verification code:

{code}

This verification code will expire in {ttl} seconds.

If you did not create an account, you can ignore this email.
"""

PASSWORD_RESET_TEXT = """Reset Your Password

We received a request to reset your password. Please use the following code to reset your password:

{code}

This code will expire in {ttl} seconds.

If you did not request a password reset, you can ignore this email.
"""


def _send(recipient, subject, body):
    try:
        send_mail(
            subject,
            body,
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send '{subject}' to {recipient}: {str(e)}")
        raise UpstreamError('Failed to send email', provider_detail=str(e)) from e
    logger.info(f"Sent '{subject}' to {recipient}")


def send_verification_email(user, code):
    body = VERIFICATION_TEXT.format(code=code, ttl=settings.OTP_TTL_SECONDS)
    _send(user.email, VERIFICATION_SUBJECT, body)


def send_password_reset_email(user, code):
    body = PASSWORD_RESET_TEXT.format(code=code, ttl=settings.OTP_TTL_SECONDS)
    _send(user.email, PASSWORD_RESET_SUBJECT, body)
