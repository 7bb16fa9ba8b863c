"""
AI Scoring Client
Band scoring for writing and speaking responses, speech transcription and
vocabulary analysis and English/Arabic translation through the OpenAI API.
"""
from django.conf import settings
from openai import OpenAI, OpenAIError
import json
import logging

from ieltsexam.exceptions import UpstreamError

logger = logging.getLogger(__name__)

WRITING_CRITERIA = [
    'Task Achievement',
    'Coherence & Cohesion',
    'Lexical Resource',
    'Grammatical Range & Accuracy',
]

SPEAKING_CRITERIA = [
    'Fluency & Coherence',
    'Lexical Resource',
    'Grammatical Range & Accuracy',
    'Pronunciation',
]

RUBRICS = {
    'writing': WRITING_CRITERIA,
    'speaking': SPEAKING_CRITERIA,
}

SCORING_PROMPT = """You are an IELTS examiner analyzing a {kind} response.
Score the response on a scale of 0-9 for each of these criteria: {criteria}.
Provide an overall band score (0-9, in 0.5 increments) and detailed feedback explaining strengths and areas for improvement.
Ensure your scoring aligns with official IELTS rubrics.
Respond with JSON in this format:
{{"overallScore": number, "criteriaScores": {{{criteria_keys}}}, "feedback": "detailed feedback with specific examples"}}"""

VOCABULARY_PROMPT = """You are an English vocabulary assistant for IELTS candidates.
For the given English word return JSON with these keys:
{"cefrLevel": one of A1, A2, B1, B2, C1, C2,
 "meaning": short English definition,
 "wordFamily": related forms separated by commas,
 "example": one natural example sentence,
 "arabicMeaning": Arabic translation}"""

TRANSLATION_PROMPT = """You are a high-quality translator specializing in IELTS exam content.
Translate the provided {source} text to formal, accurate {target} while preserving academic terminology.
Maintain the original formatting including paragraphs, bullet points, and numbering.
Reply with the translation only."""

LANGUAGES = {'ar': 'Arabic', 'en': 'English'}

CEFR_LEVELS = ('A1', 'A2', 'B1', 'B2', 'C1', 'C2')


def round_band(value):
    """Clamp to 0-9 and round to the nearest half band"""
    band = round(float(value) * 2) / 2
    return max(0.0, min(9.0, band))


class AIScoringClient:
    """Thin wrapper over the OpenAI SDK with a bounded timeout and retry budget"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise UpstreamError('AI scoring is not available', provider_detail='OPENAI_API_KEY is not set')
            # The SDK retries connection errors, 429 and 5xx with exponential backoff
            self._client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.AI_REQUEST_TIMEOUT,
                max_retries=settings.AI_MAX_RETRIES,
            )
        return self._client

    def _complete_json(self, system_prompt, user_prompt, purpose):
        try:
            completion = self.client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                messages=[
                    {'role': 'system', 'content': system_prompt},
                    {'role': 'user', 'content': user_prompt},
                ],
                response_format={'type': 'json_object'},
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed ({purpose}): {str(e)}", exc_info=True)
            raise UpstreamError(f'Failed to {purpose}', provider_detail=str(e)) from e

        content = completion.choices[0].message.content or ''
        try:
            return json.loads(content)
        except ValueError as e:
            logger.error(f"OpenAI returned non-JSON content ({purpose}): {content[:200]}")
            raise UpstreamError(f'Failed to {purpose}', provider_detail='Malformed response') from e

    def score_response(self, kind, prompt, response_text):
        """
        Score a writing or speaking response.
        Returns {'band': float, 'criteria_scores': {criterion: float}, 'feedback': str}
        """
        criteria = RUBRICS[kind]
        system_prompt = SCORING_PROMPT.format(
            kind=kind,
            criteria=', '.join(criteria),
            criteria_keys=', '.join(f'"{name}": number' for name in criteria),
        )
        label = 'WRITING PROMPT' if kind == 'writing' else 'SPEAKING PROMPT'
        response_label = 'CANDIDATE RESPONSE' if kind == 'writing' else 'TRANSCRIPTION OF CANDIDATE RESPONSE'
        user_prompt = f"{label}: {prompt or 'No prompt provided'}\n\n{response_label}: {response_text}"

        data = self._complete_json(system_prompt, user_prompt, f'score {kind} response')

        try:
            band = round_band(data['overallScore'])
            raw_criteria = data['criteriaScores']
            criteria_scores = {name: round_band(raw_criteria[name]) for name in criteria}
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed {kind} score payload: {data}")
            raise UpstreamError(f'Failed to score {kind} response', provider_detail='Malformed score payload') from e

        return {
            'band': band,
            'criteria_scores': criteria_scores,
            'feedback': str(data.get('feedback') or ''),
        }

    def transcribe(self, filename, audio_bytes):
        """Speech to text for a recorded speaking answer"""
        try:
            transcription = self.client.audio.transcriptions.create(
                model=settings.OPENAI_TRANSCRIPTION_MODEL,
                file=(filename, audio_bytes),
                language='en',
            )
        except OpenAIError as e:
            logger.error(f"OpenAI transcription failed: {str(e)}", exc_info=True)
            raise UpstreamError('Failed to transcribe speaking audio', provider_detail=str(e)) from e
        return transcription.text

    def analyze_vocabulary(self, word):
        data = self._complete_json(VOCABULARY_PROMPT, f'Word: {word}', 'analyze vocabulary')
        level = str(data.get('cefrLevel', '')).upper()
        return {
            'word': word,
            'cefrLevel': level if level in CEFR_LEVELS else 'B1',
            'meaning': str(data.get('meaning') or ''),
            'wordFamily': str(data.get('wordFamily') or ''),
            'example': str(data.get('example') or ''),
            'arabicMeaning': str(data.get('arabicMeaning') or ''),
        }

    def translate(self, text, target):
        """English <-> Arabic translation of exam content. target is 'ar' or 'en'."""
        if target not in LANGUAGES:
            raise ValueError(f'Unsupported target language: {target}')
        if not text or not text.strip():
            return ''

        target_name = LANGUAGES[target]
        source_name = LANGUAGES['en' if target == 'ar' else 'ar']
        try:
            completion = self.client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                messages=[
                    {'role': 'system', 'content': TRANSLATION_PROMPT.format(source=source_name, target=target_name)},
                    {'role': 'user', 'content': f'Translate the following {source_name} text to {target_name}:\n\n{text}'},
                ],
                temperature=0.3,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI translation failed: {str(e)}", exc_info=True)
            raise UpstreamError('Failed to translate text', provider_detail=str(e)) from e

        translation = (completion.choices[0].message.content or '').strip()
        if not translation:
            raise UpstreamError('Failed to translate text', provider_detail='Empty translation')
        return translation
