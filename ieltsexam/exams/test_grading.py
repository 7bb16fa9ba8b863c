"""
Grader and AI client tests
"""
import json
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

from django.test import SimpleTestCase, override_settings
from openai import OpenAIError

from ieltsexam.exceptions import UpstreamError
from .models import Question
from .services.ai_scoring import AIScoringClient, WRITING_CRITERIA, SPEAKING_CRITERIA, round_band
from .services.grading import AnswerGrader


def make_question(qtype, correct=None):
    return Question(type=qtype, content='Q', correct_answer=correct)


class AnswerGraderTests(SimpleTestCase):

    def test_fill_blank_is_case_and_whitespace_insensitive(self):
        question = make_question('fill_blank', 'Logographic')
        self.assertEqual(AnswerGrader.grade(question, '  logographic '), (True, Decimal('1')))
        self.assertEqual(AnswerGrader.grade(question, 'LOGOGRAPHIC'), (True, Decimal('1')))

    def test_wrong_answer_scores_zero(self):
        question = make_question('multiple_choice', 'To record commercial transactions')
        self.assertEqual(AnswerGrader.grade(question, 'To preserve religious texts'), (False, Decimal('0')))

    def test_true_false_not_given(self):
        question = make_question('true_false_ng', 'Not Given')
        self.assertTrue(AnswerGrader.grade(question, 'not given')[0])
        self.assertFalse(AnswerGrader.grade(question, 'False')[0])

    def test_open_types_are_left_ungraded(self):
        for qtype in Question.OPEN_TYPES:
            self.assertEqual(AnswerGrader.grade(make_question(qtype), 'Some long answer'), (None, None))

    def test_missing_key_is_ungraded(self):
        self.assertEqual(AnswerGrader.grade(make_question('short_answer'), 'anything'), (None, None))

    def test_matching_ignores_key_order_and_case(self):
        key = json.dumps({'Sensory memory': 'A few seconds', 'Short-term memory': '20-30 seconds'})
        question = make_question('matching', key)

        submitted = json.dumps({'short-term memory': '20-30 Seconds', 'sensory memory': 'a few seconds'})
        self.assertEqual(AnswerGrader.grade(question, submitted), (True, Decimal('1')))

    def test_matching_partial_or_garbled_answer_is_incorrect(self):
        key = json.dumps({'a': '1', 'b': '2'})
        question = make_question('matching', key)

        self.assertFalse(AnswerGrader.grade(question, json.dumps({'a': '1'}))[0])
        self.assertFalse(AnswerGrader.grade(question, 'a=1, b=2')[0])
        self.assertFalse(AnswerGrader.grade(question, '["a", "b"]')[0])

    def test_decode_mapping(self):
        self.assertEqual(AnswerGrader.decode_mapping('{"A": " X "}'), {'a': 'x'})
        self.assertIsNone(AnswerGrader.decode_mapping('not json'))
        self.assertIsNone(AnswerGrader.decode_mapping(None))


def completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class AIScoringClientTests(SimpleTestCase):

    def setUp(self):
        self.openai = MagicMock()
        self.scorer = AIScoringClient(client=self.openai)

    def test_round_band(self):
        self.assertEqual(round_band(6.3), 6.5)
        self.assertEqual(round_band(6.2), 6.0)
        self.assertEqual(round_band(11), 9.0)
        self.assertEqual(round_band(-1), 0.0)

    def test_score_writing_response(self):
        payload = {
            'overallScore': 6.5,
            'criteriaScores': {name: 6.5 for name in WRITING_CRITERIA},
            'feedback': 'Clear position, limited range.',
        }
        self.openai.chat.completions.create.return_value = completion(json.dumps(payload))

        result = self.scorer.score_response('writing', 'Discuss both views', 'Universities should...')

        self.assertEqual(result['band'], 6.5)
        self.assertEqual(set(result['criteria_scores']), set(WRITING_CRITERIA))
        self.assertEqual(result['feedback'], 'Clear position, limited range.')
        kwargs = self.openai.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs['response_format'], {'type': 'json_object'})
        self.assertIn('Pronunciation', SPEAKING_CRITERIA)

    def test_malformed_payload_is_upstream_error(self):
        self.openai.chat.completions.create.return_value = completion(json.dumps({'overallScore': 7}))
        with self.assertRaises(UpstreamError):
            self.scorer.score_response('speaking', 'Talk about your hometown', 'My hometown is...')

    def test_non_json_content_is_upstream_error(self):
        self.openai.chat.completions.create.return_value = completion('Band 7, well done')
        with self.assertRaises(UpstreamError):
            self.scorer.score_response('writing', 'Prompt', 'Response')

    def test_provider_error_is_upstream_error(self):
        self.openai.chat.completions.create.side_effect = OpenAIError('rate limited')
        with self.assertRaises(UpstreamError) as ctx:
            self.scorer.score_response('writing', 'Prompt', 'Response')
        self.assertEqual(ctx.exception.provider_detail, 'rate limited')

    @override_settings(OPENAI_API_KEY='')
    def test_missing_api_key_is_upstream_error(self):
        with self.assertRaises(UpstreamError):
            AIScoringClient().transcribe('a.webm', b'...')

    def test_transcribe(self):
        self.openai.audio.transcriptions.create.return_value = SimpleNamespace(text='I live in Cairo.')
        self.assertEqual(self.scorer.transcribe('a.webm', b'bytes'), 'I live in Cairo.')

    def test_analyze_vocabulary_defaults_unknown_level(self):
        self.openai.chat.completions.create.return_value = completion(json.dumps({
            'cefrLevel': 'X9', 'meaning': 'to make better', 'wordFamily': 'improvement', 'example': 'e.g.',
        }))
        result = self.scorer.analyze_vocabulary('improve')
        self.assertEqual(result['cefrLevel'], 'B1')
        self.assertEqual(result['wordFamily'], 'improvement')
        self.assertEqual(result['arabicMeaning'], '')

    def test_translate_to_arabic(self):
        self.openai.chat.completions.create.return_value = completion('  الحجة واضحة  ')

        result = self.scorer.translate('The argument is clear.', 'ar')

        self.assertEqual(result, 'الحجة واضحة')
        messages = self.openai.chat.completions.create.call_args.kwargs['messages']
        self.assertIn('English text to Arabic', messages[1]['content'])

    def test_translate_blank_text_skips_provider(self):
        self.assertEqual(self.scorer.translate('   ', 'en'), '')
        self.openai.chat.completions.create.assert_not_called()

    def test_translate_empty_reply_is_upstream_error(self):
        self.openai.chat.completions.create.return_value = completion('')
        with self.assertRaises(UpstreamError):
            self.scorer.translate('Hello', 'ar')

    def test_translate_unknown_language(self):
        with self.assertRaises(ValueError):
            self.scorer.translate('Hello', 'fr')
