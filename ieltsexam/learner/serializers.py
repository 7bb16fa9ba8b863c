from rest_framework import serializers

from .models import Vocabulary, Badge, UserLevel, UserBadge, PointHistory, Notification, CEFR_CHOICES


class VocabularySerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source='user_id', read_only=True)
    cefrLevel = serializers.ChoiceField(source='cefr_level', choices=CEFR_CHOICES)
    wordFamily = serializers.CharField(source='word_family', required=False, allow_blank=True, max_length=255)
    example = serializers.CharField(required=False, allow_blank=True)
    arabicMeaning = serializers.CharField(source='arabic_meaning', required=False, allow_blank=True)
    reviewStage = serializers.IntegerField(source='review_stage', read_only=True)
    lastReviewed = serializers.DateTimeField(source='last_reviewed', read_only=True)
    nextReview = serializers.DateTimeField(source='next_review', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Vocabulary
        fields = [
            'id', 'userId', 'word', 'cefrLevel', 'wordFamily', 'meaning', 'example', 'arabicMeaning',
            'reviewStage', 'lastReviewed', 'nextReview', 'createdAt',
        ]

    def validate_word(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Word cannot be blank.')
        return value


class ReviewSerializer(serializers.Serializer):
    knowledgeRating = serializers.IntegerField(min_value=1, max_value=5)


class AnalyzeWordSerializer(serializers.Serializer):
    word = serializers.CharField(max_length=100)


class BadgeSerializer(serializers.ModelSerializer):
    badgeType = serializers.CharField(source='badge_type')
    imageUrl = serializers.CharField(source='image_url')
    moduleType = serializers.CharField(source='module_type')
    requiredCount = serializers.IntegerField(source='required_count')
    requiredScore = serializers.IntegerField(source='required_score')

    class Meta:
        model = Badge
        fields = [
            'id', 'name', 'description', 'badgeType', 'rarity', 'imageUrl',
            'moduleType', 'requiredCount', 'requiredScore', 'repeatable',
        ]


class UserBadgeSerializer(serializers.ModelSerializer):
    badge = BadgeSerializer(read_only=True)
    timesEarned = serializers.IntegerField(source='times_earned')
    earnedAt = serializers.DateTimeField(source='earned_at')
    lastEarnedAt = serializers.DateTimeField(source='last_earned_at')

    class Meta:
        model = UserBadge
        fields = ['id', 'badge', 'timesEarned', 'earnedAt', 'lastEarnedAt']


class UserLevelSerializer(serializers.ModelSerializer):
    requiredPoints = serializers.IntegerField(source='required_points')

    class Meta:
        model = UserLevel
        fields = ['level', 'name', 'requiredPoints']


class PointHistorySerializer(serializers.ModelSerializer):
    actionType = serializers.CharField(source='action_type')
    pointsAwarded = serializers.IntegerField(source='points_awarded')
    relatedEntityType = serializers.CharField(source='related_entity_type')
    relatedEntityId = serializers.CharField(source='related_entity_id')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = PointHistory
        fields = ['id', 'actionType', 'pointsAwarded', 'relatedEntityType', 'relatedEntityId', 'createdAt']


class NotificationSerializer(serializers.ModelSerializer):
    isRead = serializers.BooleanField(source='is_read')
    actionLink = serializers.CharField(source='action_link')
    scheduledFor = serializers.DateTimeField(source='scheduled_for')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'priority', 'isRead', 'actionLink', 'scheduledFor', 'createdAt']
