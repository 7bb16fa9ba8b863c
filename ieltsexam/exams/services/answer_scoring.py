"""
Answer Scoring Service
Admin grading overrides and AI band scoring for essay/speaking answers.
Every score change is rolled up into the owning attempt.
"""
from decimal import Decimal
from django.conf import settings
import logging

from ieltsexam.exceptions import AuthorizationError, NotFoundError, UpstreamError, ValidationError
from ..models import Answer
from .ai_scoring import AIScoringClient
from .attempts import AttemptService
from .jobs import enqueue_answer_scoring

logger = logging.getLogger(__name__)

OVERRIDE_FIELDS = ('is_correct', 'score', 'feedback')


class AnswerScoringService:

    @staticmethod
    def _get_answer(answer_id):
        answer = Answer.objects.select_related('question', 'attempt', 'attempt__test').filter(id=answer_id).first()
        if answer is None:
            raise NotFoundError('Answer not found')
        return answer

    @staticmethod
    def update_answer(admin, answer_id, changes):
        """
        Manual grading by an admin.
        changes holds any of is_correct, score, feedback; at least one is required.
        """
        changes = {key: value for key, value in changes.items() if key in OVERRIDE_FIELDS}
        if not changes:
            raise ValidationError('Provide at least one of isCorrect, score or feedback')

        answer = AnswerScoringService._get_answer(answer_id)
        score_changed = 'score' in changes and changes['score'] != answer.score

        for field, value in changes.items():
            setattr(answer, field, value)
        answer.graded_by = admin
        answer.save()

        logger.info(f"Admin {admin.id} graded answer {answer.id}: {sorted(changes)}")
        if score_changed:
            AttemptService.apply_score_change(answer.attempt_id)
        return answer

    @staticmethod
    def request_ai_score(actor, answer_id):
        """
        Score inline, or queue on rq when AI_SCORING_ASYNC is set.
        Returns (answer, queued).
        """
        answer = AnswerScoringService._get_answer(answer_id)
        if answer.attempt.user_id != actor.id and not actor.is_admin:
            raise AuthorizationError('You can only request scoring for your own answers')
        if not answer.question.is_open:
            raise ValidationError('Only essay and speaking answers are AI scored')
        if not answer.answer.strip():
            raise ValidationError('Answer has no text to score')

        if settings.AI_SCORING_ASYNC:
            answer.ai_status = 'queued'
            answer.save(update_fields=['ai_status', 'updated_at'])
            enqueue_answer_scoring(answer.id)
            return answer, True

        return AnswerScoringService.score_answer_with_ai(answer.id), False

    @staticmethod
    def score_answer_with_ai(answer_id, scorer=None):
        """Run the AI scorer and store band, rubric breakdown and feedback"""
        answer = AnswerScoringService._get_answer(answer_id)
        kind = 'speaking' if answer.question.type == 'speaking' else 'writing'

        try:
            result = (scorer or AIScoringClient()).score_response(kind, answer.question.content, answer.answer)
        except UpstreamError:
            answer.ai_status = 'failed'
            answer.save(update_fields=['ai_status', 'updated_at'])
            raise

        answer.score = Decimal(str(result['band']))
        answer.criteria_scores = result['criteria_scores']
        answer.feedback = result['feedback']
        answer.is_correct = None
        answer.ai_status = 'scored'
        answer.graded_by = None
        answer.save()

        logger.info(f"AI scored answer {answer.id}: band {result['band']}")
        AttemptService.apply_score_change(answer.attempt_id)
        return answer
