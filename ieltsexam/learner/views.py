"""
Learner API views
Vocabulary list, gamification and the notification inbox
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
import logging

from ieltsexam.exceptions import ValidationError
from .models import Badge, PointHistory
from .serializers import (
    VocabularySerializer,
    ReviewSerializer,
    AnalyzeWordSerializer,
    BadgeSerializer,
    UserBadgeSerializer,
    UserLevelSerializer,
    PointHistorySerializer,
    NotificationSerializer,
)
from .services.gamification_service import GamificationService
from .services.notification_service import NotificationService
from .services.vocabulary_service import VocabularyService, DEFAULT_DUE_LIMIT

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100


def _validated(serializer_class, data, partial=False):
    serializer = serializer_class(data=data, partial=partial)
    if not serializer.is_valid():
        raise ValidationError('Invalid request data', fields=serializer.errors)
    return serializer


def _limit(request, default):
    raw = request.query_params.get('limit')
    if raw is None:
        return default
    try:
        limit = int(raw)
    except ValueError:
        raise ValidationError('limit must be an integer', fields={'limit': ['A valid integer is required.']})
    return max(1, min(limit, MAX_LIST_LIMIT))


# ============================================
# VOCABULARY
# ============================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vocabulary_list(request):
    """
    GET  /api/vocabulary/?cefrLevel=B2
    POST /api/vocabulary/ {word, cefrLevel, meaning, example?, wordFamily?, arabicMeaning?}
    """
    if request.method == 'GET':
        words = VocabularyService.list_for_user(request.user, request.query_params.get('cefrLevel'))
        return Response(VocabularySerializer(words, many=True).data)

    serializer = _validated(VocabularySerializer, request.data)
    word = VocabularyService.add_word(request.user, serializer.validated_data)
    return Response(VocabularySerializer(word).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vocabulary_detail(request, vocabulary_id):
    if request.method == 'DELETE':
        VocabularyService.delete_word(request.user, vocabulary_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = _validated(VocabularySerializer, request.data, partial=True)
    word = VocabularyService.update_word(request.user, vocabulary_id, serializer.validated_data)
    return Response(VocabularySerializer(word).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def review_vocabulary(request, vocabulary_id):
    """PATCH /api/vocabulary/<id>/review/ {knowledgeRating: 1..5}"""
    serializer = _validated(ReviewSerializer, request.data)
    word = VocabularyService.review_word(request.user, vocabulary_id, serializer.validated_data['knowledgeRating'])
    return Response(VocabularySerializer(word).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vocabulary_due(request):
    """GET /api/vocabulary/review/?limit=20"""
    words = VocabularyService.due_for_review(request.user, _limit(request, DEFAULT_DUE_LIMIT))
    return Response(VocabularySerializer(words, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def analyze_vocabulary(request):
    """POST /api/vocabulary/analyze/ {word}"""
    serializer = _validated(AnalyzeWordSerializer, request.data)
    return Response(VocabularyService.analyze(serializer.validated_data['word']))


# ============================================
# GAMIFICATION
# ============================================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_achievement(request):
    """Points, level progress, badges and recent point history for the current user"""
    summary = GamificationService.summary(request.user)
    current, next_level = summary['current_level'], summary['next_level']
    return Response({
        'achievement': GamificationService.serialize_achievement(summary['achievement']),
        'level': UserLevelSerializer(current).data if current else None,
        'nextLevel': UserLevelSerializer(next_level).data if next_level else None,
        'levelProgress': summary['level_progress'],
        'badges': UserBadgeSerializer(summary['badges'], many=True).data,
        'recentPoints': PointHistorySerializer(summary['recent_points'], many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def login_streak(request):
    achievement, milestone = GamificationService.update_login_streak(request.user)
    return Response({
        'achievement': GamificationService.serialize_achievement(achievement),
        'milestone': milestone,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def leaderboard(request):
    return Response(GamificationService.leaderboard(_limit(request, 10)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def badges(request):
    """Active badge catalog, flagging the ones the user holds"""
    held = {ub.badge_id: ub for ub in request.user.badges.all()}
    data = []
    for badge in Badge.objects.filter(is_active=True):
        item = BadgeSerializer(badge).data
        item['earned'] = badge.id in held
        item['timesEarned'] = held[badge.id].times_earned if badge.id in held else 0
        data.append(item)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def points_history(request):
    entries = PointHistory.objects.filter(user=request.user).order_by('-created_at')[:_limit(request, 50)]
    return Response(PointHistorySerializer(entries, many=True).data)


# ============================================
# NOTIFICATIONS
# ============================================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """GET /api/notifications/?unread=true"""
    unread_only = request.query_params.get('unread', '').lower() in ('1', 'true', 'yes')
    notifications = NotificationService.list_for_user(request.user, unread_only=unread_only)
    return Response(NotificationSerializer(notifications, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    return Response({'count': NotificationService.unread_count(request.user)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def mark_notification_read(request, notification_id):
    notification = NotificationService.mark_read(request.user, notification_id)
    return Response(NotificationSerializer(notification).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_read(request):
    updated = NotificationService.mark_all_read(request.user)
    return Response({'updated': updated})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_notification(request, notification_id):
    NotificationService.delete(request.user, notification_id)
    return Response(status=status.HTTP_204_NO_CONTENT)
