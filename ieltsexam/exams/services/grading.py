"""
Answer Grader
Automatic grading for closed question types.
Essay and speaking answers are left ungraded here; they are scored by the
AI scorer or by an admin.
"""
from decimal import Decimal
import json
import logging

logger = logging.getLogger(__name__)


class AnswerGrader:
    """Dispatches on question type; returns (is_correct, score) or (None, None)"""

    CORRECT = (True, Decimal('1'))
    INCORRECT = (False, Decimal('0'))
    UNGRADED = (None, None)

    @staticmethod
    def normalize(value):
        return str(value if value is not None else '').strip().lower()

    @staticmethod
    def decode_mapping(value):
        """
        Decode a matching answer into {item: match} with normalized keys and values.
        Returns None when the value is not a JSON object.
        """
        if isinstance(value, dict):
            data = value
        else:
            try:
                data = json.loads(value)
            except (TypeError, ValueError):
                return None
        if not isinstance(data, dict):
            return None
        return {AnswerGrader.normalize(k): AnswerGrader.normalize(v) for k, v in data.items()}

    @staticmethod
    def grade_exact(question, answer_text):
        if question.correct_answer is None:
            logger.warning(f"Question {question.id} ({question.type}) has no answer key")
            return AnswerGrader.UNGRADED
        if AnswerGrader.normalize(answer_text) == AnswerGrader.normalize(question.correct_answer):
            return AnswerGrader.CORRECT
        return AnswerGrader.INCORRECT

    @staticmethod
    def grade_matching(question, answer_text):
        expected = AnswerGrader.decode_mapping(question.correct_answer)
        if expected is None:
            logger.warning(f"Matching question {question.id} has an undecodable answer key")
            return AnswerGrader.UNGRADED
        submitted = AnswerGrader.decode_mapping(answer_text)
        if submitted is not None and submitted == expected:
            return AnswerGrader.CORRECT
        return AnswerGrader.INCORRECT

    @staticmethod
    def grade_open(question, answer_text):
        return AnswerGrader.UNGRADED

    GRADERS = {
        'multiple_choice': 'grade_exact',
        'true_false_ng': 'grade_exact',
        'fill_blank': 'grade_exact',
        'short_answer': 'grade_exact',
        'matching': 'grade_matching',
        'essay': 'grade_open',
        'speaking': 'grade_open',
    }

    @classmethod
    def grade(cls, question, answer_text):
        handler = getattr(cls, cls.GRADERS[question.type])
        return handler(question, answer_text)
