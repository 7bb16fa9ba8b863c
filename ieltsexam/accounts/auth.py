"""
Authentication endpoints
Session + token login, registration, email verification and password reset
"""
from django.contrib.auth import authenticate, get_user_model, login as django_login, logout as django_logout
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
import logging

from ieltsexam.exceptions import AuthenticationError, UpstreamError, ValidationError
from learner.services.gamification_service import GamificationService
from learner.services.notification_service import NotificationService
from .emails import send_verification_email, send_password_reset_email
from .otp import OneTimeCodeService
from .permissions import IsAdmin
from .serializers import (
    UserSerializer,
    RegisterSerializer,
    LoginSerializer,
    VerifyCodeSerializer,
    EmailSerializer,
    ResetPasswordSerializer,
    RoleSerializer,
)

logger = logging.getLogger(__name__)

UserProfile = get_user_model()

BACKEND = 'accounts.auth_backend.UsernameOrEmailBackend'


def _validated(serializer_class, data):
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationError('Invalid request data', fields=serializer.errors)
    return serializer


def _send_verification(user):
    """Issue a verification code and email it. Returns False when delivery failed."""
    code = OneTimeCodeService.issue(user, 'email_verification')
    try:
        send_verification_email(user, code)
    except UpstreamError:
        return False
    return True


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    POST /api/auth/register/
    Body: {username, email, password}

    Creates a test taker, logs them in and emails a verification code.
    """
    serializer = _validated(RegisterSerializer, request.data)

    with transaction.atomic():
        user = serializer.save()
        GamificationService.get_or_create_achievement(user)
        NotificationService.create_welcome_notifications(user)

    token, _ = Token.objects.get_or_create(user=user)
    django_login(request, user, backend=BACKEND)
    email_sent = _send_verification(user)

    logger.info(f"Registered user {user.username} ({user.id})")
    return Response({
        'user': UserSerializer(user).data,
        'token': token.key,
        'verificationEmailSent': email_sent,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    POST /api/auth/login/
    Body: {username, password} - username may also be the email address

    Response: {user, token, achievement}
    """
    serializer = _validated(LoginSerializer, request.data)
    user = authenticate(
        request,
        username=serializer.validated_data['username'],
        password=serializer.validated_data['password'],
    )
    if user is None:
        logger.warning(f"Failed login for '{serializer.validated_data['username']}'")
        raise AuthenticationError('Invalid username or password')

    django_login(request, user)
    token, _ = Token.objects.get_or_create(user=user)
    achievement, _ = GamificationService.update_login_streak(user)

    return Response({
        'user': UserSerializer(user).data,
        'token': token.key,
        'achievement': GamificationService.serialize_achievement(achievement),
    }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """POST /api/auth/logout/"""
    Token.objects.filter(user=request.user).delete()
    django_logout(request)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user(request):
    """GET /api/auth/user/"""
    return Response(UserSerializer(request.user).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def verify_email(request):
    """
    POST /api/auth/verify-email/
    Body: {email, code}
    """
    serializer = _validated(VerifyCodeSerializer, request.data)
    user = UserProfile.objects.filter(email__iexact=serializer.validated_data['email']).first()
    if user is None:
        raise ValidationError('Invalid verification code', fields={'code': ['Invalid code.']})
    if user.verified:
        return Response({'message': 'Email already verified', 'user': UserSerializer(user).data})

    OneTimeCodeService.consume(user, 'email_verification', serializer.validated_data['code'])
    user.verified = True
    user.save(update_fields=['verified'])

    logger.info(f"User {user.id} verified email")
    return Response({'message': 'Email verified successfully', 'user': UserSerializer(user).data})


@api_view(['POST'])
@permission_classes([AllowAny])
def resend_verification(request):
    """
    POST /api/auth/resend-verification/
    Body: {email}
    """
    serializer = _validated(EmailSerializer, request.data)
    user = UserProfile.objects.filter(email__iexact=serializer.validated_data['email']).first()
    if user is None:
        raise ValidationError('No account found for this email', fields={'email': ['Unknown email.']})
    if user.verified:
        raise ValidationError('Email already verified')

    code = OneTimeCodeService.issue(user, 'email_verification')
    send_verification_email(user, code)
    return Response({'message': 'Verification code sent'})


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password(request):
    """
    POST /api/auth/forgot-password/
    Body: {email}

    Answers the same way whether or not the email is registered.
    """
    serializer = _validated(EmailSerializer, request.data)
    user = UserProfile.objects.filter(
        email__iexact=serializer.validated_data['email'], is_active=True
    ).first()
    if user is not None:
        code = OneTimeCodeService.issue(user, 'password_reset')
        try:
            send_password_reset_email(user, code)
        except UpstreamError:
            # Response must not reveal whether the account exists
            logger.warning(f"Password reset email not delivered for user {user.id}")
    else:
        logger.info('Password reset requested for unknown email')

    return Response({'message': 'If the email is registered, a reset code has been sent'})


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password(request):
    """
    POST /api/auth/reset-password/
    Body: {email, code, password}
    """
    serializer = _validated(ResetPasswordSerializer, request.data)
    data = serializer.validated_data
    user = UserProfile.objects.filter(email__iexact=data['email']).first()
    if user is None:
        raise ValidationError('Invalid verification code', fields={'code': ['Invalid code.']})

    with transaction.atomic():
        OneTimeCodeService.consume(user, 'password_reset', data['code'])
        user.set_password(data['password'])
        user.save(update_fields=['password'])
        Token.objects.filter(user=user).delete()

    logger.info(f"Password reset for user {user.id}")
    return Response({'message': 'Password has been reset'})


@api_view(['PATCH'])
@permission_classes([IsAdmin])
def update_user_role(request, user_id):
    """
    PATCH /api/auth/users/<id>/role/
    Body: {role: "test_taker" | "admin"}
    """
    serializer = _validated(RoleSerializer, request.data)
    user = get_object_or_404(UserProfile, id=user_id)
    user.role = serializer.validated_data['role']
    user.save()

    logger.info(f"Admin {request.user.id} set role of {user.id} to {user.role}")
    return Response(UserSerializer(user).data)
