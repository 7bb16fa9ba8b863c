"""
Vocabulary Service
Spaced-repetition word list: staging, due lists and word management
"""
from datetime import timedelta
from django.db import transaction
from django.utils import timezone
import logging

from exams.services.ai_scoring import AIScoringClient
from ieltsexam.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models import Vocabulary
from .gamification_service import GamificationService

logger = logging.getLogger(__name__)

MAX_STAGE = 5
INTERVAL_DAYS = {0: 1, 1: 3, 2: 7, 3: 14, 4: 30, 5: 90}
FIRST_REVIEW_DELAY = timedelta(hours=24)
DEFAULT_DUE_LIMIT = 20

EDITABLE_FIELDS = ('word', 'cefr_level', 'word_family', 'meaning', 'example', 'arabic_meaning')


def schedule_review(stage, rating, now):
    """
    Next (stage, next_review) after a self-assessed review.
    rating 4-5 moves up one stage (capped at 5), 3 keeps the stage, 1-2 resets to 0.
    """
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError('knowledgeRating must be an integer from 1 to 5',
                              fields={'knowledgeRating': ['Must be between 1 and 5.']})

    if rating >= 4:
        new_stage = min(stage + 1, MAX_STAGE)
    elif rating <= 2:
        new_stage = 0
    else:
        new_stage = stage

    days = INTERVAL_DAYS[min(new_stage, MAX_STAGE)]
    return new_stage, now + timedelta(days=days)


class VocabularyService:
    """Service for a user's vocabulary list"""

    @staticmethod
    def add_word(user, data, now=None):
        now = now or timezone.now()
        with transaction.atomic():
            word = Vocabulary.objects.create(
                user=user,
                review_stage=0,
                next_review=now + FIRST_REVIEW_DELAY,
                created_at=now,
                **{field: data[field] for field in EDITABLE_FIELDS if field in data},
            )
            GamificationService.record_vocabulary_addition(user, word)

        logger.info(f"User {user.id} added word '{word.word}' ({word.cefr_level})")
        return word

    @staticmethod
    def get(user, vocabulary_id):
        word = Vocabulary.objects.filter(id=vocabulary_id).first()
        if word is None:
            raise NotFoundError('Vocabulary item not found')
        if word.user_id != user.id:
            raise AuthorizationError('You can only access your own vocabulary')
        return word

    @staticmethod
    def list_for_user(user, cefr_level=None):
        queryset = Vocabulary.objects.filter(user=user)
        if cefr_level:
            queryset = queryset.filter(cefr_level=cefr_level.upper())
        return queryset.order_by('-created_at')

    @staticmethod
    def update_word(user, vocabulary_id, changes):
        word = VocabularyService.get(user, vocabulary_id)
        fields = [field for field in EDITABLE_FIELDS if field in changes]
        if not fields:
            raise ValidationError('No changes provided')
        for field in fields:
            setattr(word, field, changes[field])
        word.save(update_fields=fields)
        return word

    @staticmethod
    def delete_word(user, vocabulary_id):
        word = VocabularyService.get(user, vocabulary_id)
        logger.info(f"User {user.id} deleted word '{word.word}'")
        word.delete()

    @staticmethod
    def review_word(user, vocabulary_id, rating, now=None):
        now = now or timezone.now()
        with transaction.atomic():
            word = VocabularyService.get(user, vocabulary_id)
            word = Vocabulary.objects.select_for_update().get(pk=word.pk)
            word.review_stage, word.next_review = schedule_review(word.review_stage, rating, now)
            word.last_reviewed = now
            word.save(update_fields=['review_stage', 'next_review', 'last_reviewed'])
            GamificationService.record_vocabulary_review(user, word)

        logger.info(f"User {user.id} reviewed '{word.word}' (rating {rating}, stage {word.review_stage})")
        return word

    @staticmethod
    def due_for_review(user, limit=DEFAULT_DUE_LIMIT, now=None):
        """Words whose next_review has passed, lowest stage first"""
        return list(
            Vocabulary.objects.filter(user=user, next_review__lte=now or timezone.now())
            .order_by('review_stage', 'next_review')[:limit]
        )

    @staticmethod
    def analyze(word, client=None):
        """AI auto-fill for the add-word form"""
        word = (word or '').strip()
        if not word:
            raise ValidationError('Word is required', fields={'word': ['This field is required.']})
        return (client or AIScoringClient()).analyze_vocabulary(word)
