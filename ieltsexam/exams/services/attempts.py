"""
Attempt Service
Lifecycle of a user's timed run through a test:
not_started -> in_progress <-> paused -> completed | timed_out
"""
from django.core.files.storage import default_storage
from django.db import IntegrityError, transaction
from django.db.models import Sum, Avg
from django.utils import timezone
from decimal import Decimal
import logging
import os

from ieltsexam.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from learner.services.gamification_service import GamificationService
from learner.services.notification_service import NotificationService
from ..models import Test, Question, Attempt, Answer
from .ai_scoring import AIScoringClient
from .grading import AnswerGrader

logger = logging.getLogger(__name__)

TRANSITIONS = {
    'not_started': {'in_progress', 'completed', 'timed_out'},
    'in_progress': {'paused', 'completed', 'timed_out'},
    'paused': {'in_progress', 'completed', 'timed_out'},
    'completed': set(),
    'timed_out': set(),
}

BAND_MODULES = ('writing', 'speaking')


def time_remaining(attempt, now=None):
    """Seconds left on the clock, never negative"""
    now = now or timezone.now()
    elapsed = (now - attempt.start_time).total_seconds()
    return max(0, int(attempt.test.duration_seconds - elapsed))


class AttemptService:
    """Service for creating, tracking and finishing test attempts"""

    @staticmethod
    def create(user, test_id):
        test = Test.objects.filter(id=test_id).first()
        if test is None or (not test.active and not user.is_admin):
            raise NotFoundError('Test not found')

        if Attempt.objects.filter(user=user, test=test, status__in=Attempt.ACTIVE_STATUSES).exists():
            raise ConflictError('An active attempt already exists for this test')

        try:
            with transaction.atomic():
                attempt = Attempt.objects.create(
                    user=user,
                    test=test,
                    status='in_progress',
                    start_time=timezone.now(),
                )
        except IntegrityError:
            # Lost the race against a concurrent create
            raise ConflictError('An active attempt already exists for this test')

        logger.info(f"User {user.id} started attempt {attempt.id} on test {test.id}")
        return attempt

    @staticmethod
    def get_active(user, test_id=None, now=None):
        """
        Most recently started in_progress/paused attempt, with time_remaining set.
        Returns None when there is no active attempt.
        """
        queryset = Attempt.objects.select_related('test').filter(
            user=user, status__in=Attempt.ACTIVE_STATUSES
        )
        if test_id:
            queryset = queryset.filter(test_id=test_id)
        attempt = queryset.order_by('-start_time').first()
        if attempt is not None:
            attempt.time_remaining = time_remaining(attempt, now)
        return attempt

    @staticmethod
    def get(actor, attempt_id):
        attempt = Attempt.objects.select_related('test', 'user').filter(id=attempt_id).first()
        if attempt is None:
            raise NotFoundError('Attempt not found')
        if attempt.user_id != actor.id and not actor.is_admin:
            raise AuthorizationError('You can only access your own attempts')
        if not attempt.is_terminal:
            attempt.time_remaining = time_remaining(attempt)
        return attempt

    @staticmethod
    def list_for_user(user):
        return Attempt.objects.select_related('test').filter(user=user).order_by('-start_time')

    @staticmethod
    def list_for_test(test_id):
        return Attempt.objects.select_related('test', 'user').filter(test_id=test_id).order_by('-start_time')

    @staticmethod
    def answers(actor, attempt_id):
        attempt = AttemptService.get(actor, attempt_id)
        return attempt.answers.select_related('question').order_by('created_at')

    @staticmethod
    def update_status(actor, attempt_id, new_status, end_time=None, score=None):
        """
        Owner or admin only. Leaving a terminal state is a conflict.
        Entering completed/timed_out stamps end_time (defaults to now).
        """
        with transaction.atomic():
            attempt = Attempt.objects.select_for_update().filter(id=attempt_id).first()
            if attempt is None:
                raise NotFoundError('Attempt not found')
            if attempt.user_id != actor.id and not actor.is_admin:
                raise AuthorizationError('You can only update your own attempts')

            if attempt.is_terminal:
                raise ConflictError(f'Attempt is already {attempt.status}')
            if new_status == attempt.status:
                return attempt
            if new_status not in TRANSITIONS[attempt.status]:
                raise ConflictError(f'Cannot move attempt from {attempt.status} to {new_status}')

            attempt.status = new_status
            if new_status in Attempt.TERMINAL_STATUSES:
                attempt.end_time = end_time or timezone.now()
                if score is not None:
                    attempt.score = score
                else:
                    attempt.score = attempt.answers.aggregate(total=Sum('score'))['total']
            elif score is not None:
                attempt.score = score
            attempt.save()

            logger.info(f"Attempt {attempt.id} moved to {new_status} by {actor.id}")
            if new_status == 'completed':
                AttemptService._on_completed(attempt)

        return attempt

    @staticmethod
    def _check_answerable(actor, attempt_id, question_id):
        attempt = Attempt.objects.select_related('test').filter(id=attempt_id).first()
        if attempt is None:
            raise NotFoundError('Attempt not found')
        if attempt.user_id != actor.id:
            raise AuthorizationError('You can only answer your own attempts')
        if attempt.is_terminal:
            raise ConflictError(f'Attempt is already {attempt.status}')

        question = Question.objects.filter(id=question_id, test_id=attempt.test_id).first()
        if question is None:
            raise NotFoundError('Question not found in this test')
        return attempt, question

    @staticmethod
    def record_answer(actor, attempt_id, question_id, answer_text, audio_path=None):
        """
        Upsert the answer for (attempt, question). Closed types are graded
        immediately; open types start ungraded again.
        """
        attempt, question = AttemptService._check_answerable(actor, attempt_id, question_id)
        is_correct, score = AnswerGrader.grade(question, answer_text)

        defaults = {
            'answer': answer_text or '',
            'audio_path': audio_path,
            'is_correct': is_correct,
            'score': score,
            'feedback': None,
            'criteria_scores': None,
            'ai_status': 'none',
            'graded_by': None,
        }
        try:
            with transaction.atomic():
                answer, created = Answer.objects.update_or_create(attempt=attempt, question=question, defaults=defaults)
        except IntegrityError:
            # A concurrent first submission inserted the row; update it instead
            answer, created = Answer.objects.update_or_create(attempt=attempt, question=question, defaults=defaults)
        logger.debug(f"{'Recorded' if created else 'Updated'} answer {answer.id} for attempt {attempt.id}")
        return answer

    @staticmethod
    def record_speaking_audio(actor, attempt_id, question_id, audio_file, scorer=None):
        """Store an uploaded recording, transcribe it and record the transcript as the answer"""
        attempt, question = AttemptService._check_answerable(actor, attempt_id, question_id)
        if question.type != 'speaking':
            raise ValidationError('Audio can only be submitted for speaking questions')

        ext = os.path.splitext(audio_file.name)[1].lower() or '.webm'
        path = default_storage.save(f'speaking/{attempt.id}/{question.id}{ext}', audio_file)

        with default_storage.open(path, 'rb') as stored:
            audio_bytes = stored.read()
        transcript = (scorer or AIScoringClient()).transcribe(os.path.basename(path), audio_bytes)

        logger.info(f"Transcribed speaking answer for attempt {attempt.id}, question {question.id}")
        return AttemptService.record_answer(actor, attempt.id, question.id, transcript, audio_path=path)

    @staticmethod
    def apply_score_change(attempt_id):
        """
        Recompute the attempt score as the sum of its answer scores and
        complete the attempt if it is still open.
        """
        with transaction.atomic():
            attempt = Attempt.objects.select_for_update().get(id=attempt_id)
            attempt.score = attempt.answers.aggregate(total=Sum('score'))['total']
            completed_now = False
            if not attempt.is_terminal:
                attempt.status = 'completed'
                attempt.end_time = attempt.end_time or timezone.now()
                completed_now = True
            attempt.save()

            if completed_now:
                logger.info(f"Attempt {attempt.id} completed after grading")
                AttemptService._on_completed(attempt)
        return attempt

    @staticmethod
    def percentage_score(attempt):
        """
        0-100 result used for achievements.
        Reading/listening: share of questions answered correctly.
        Writing/speaking: mean band over 9.
        None when nothing has been graded yet.
        """
        if attempt.test.module in BAND_MODULES:
            mean_band = attempt.answers.filter(score__isnull=False).aggregate(mean=Avg('score'))['mean']
            if mean_band is None:
                return None
            return int(round(Decimal(mean_band) / Decimal('9') * 100))

        total_questions = attempt.test.questions.count()
        if total_questions == 0:
            return None
        correct = attempt.answers.filter(is_correct=True).count()
        return int(round(correct * 100 / total_questions))

    @staticmethod
    def _on_completed(attempt):
        percentage = AttemptService.percentage_score(attempt)
        NotificationService.notify_test_completed(attempt.user, attempt)
        GamificationService.record_test_completion(attempt.user, percentage, attempt=attempt)
