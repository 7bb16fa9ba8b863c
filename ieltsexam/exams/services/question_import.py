"""
Bulk question import from CSV, XLSX or JSON uploads.

CSV / XLSX columns (header row required):
type,content,option_a,option_b,option_c,option_d,correct_answer,passage_index,audio_path

JSON:
[{"type": "...", "content": "...", "options": [...], "correct_answer": "...", "passage_index": 0}]

All rows are validated before anything is written; one bad row rejects the file.
"""
from django.db import transaction
import csv
import io
import json
import logging

import openpyxl

from ieltsexam.exceptions import ValidationError
from ..models import Question
from .grading import AnswerGrader

logger = logging.getLogger(__name__)

OPTION_COLUMNS = ['option_a', 'option_b', 'option_c', 'option_d', 'option_e', 'option_f']
QUESTION_TYPES = {choice for choice, _ in Question.QUESTION_TYPE_CHOICES}


def _clean(value):
    if value is None:
        return ''
    return str(value).strip()


def read_rows(upload):
    """Return a list of dicts from the uploaded file, keyed by lower-cased header"""
    name = (upload.name or '').lower()

    if name.endswith('.csv'):
        try:
            text = upload.read().decode('utf-8-sig')
        except UnicodeDecodeError:
            raise ValidationError('CSV file must be UTF-8 encoded')
        reader = csv.DictReader(io.StringIO(text))
        return [{_clean(k).lower(): v for k, v in row.items() if k} for row in reader]

    if name.endswith('.xlsx'):
        try:
            wb = openpyxl.load_workbook(upload, read_only=True, data_only=True)
        except Exception as e:
            raise ValidationError(f'Failed to parse Excel file: {str(e)}')
        ws = wb.active
        rows = list(ws.iter_rows(values_only=True))
        wb.close()
        if not rows:
            raise ValidationError('Excel file is empty')
        headers = [_clean(h).lower() for h in rows[0]]
        items = []
        for r in rows[1:]:
            if not r or all(_clean(c) == '' for c in r):
                continue
            items.append({h: (r[i] if i < len(r) else None) for i, h in enumerate(headers) if h})
        return items

    if name.endswith('.json'):
        try:
            data = json.loads(upload.read().decode('utf-8'))
        except ValueError as e:
            raise ValidationError(f'Invalid JSON file: {str(e)}')
        if not isinstance(data, list):
            raise ValidationError('JSON file must contain a list of questions')
        return data

    raise ValidationError('File must be CSV, XLSX or JSON')


def build_question(row):
    """Validate one row and return Question field values"""
    if not isinstance(row, dict):
        raise ValueError('row must be an object')

    qtype = _clean(row.get('type') or row.get('question_type') or 'multiple_choice').lower()
    if qtype not in QUESTION_TYPES:
        raise ValueError(f"unknown question type '{qtype}'")

    content = _clean(row.get('content') or row.get('question_text'))
    if not content:
        raise ValueError("'content' is required")

    options = row.get('options')
    if isinstance(options, str):
        options = [o.strip() for o in options.split('|') if o.strip()]
    if not options:
        options = [_clean(row.get(key)) for key in OPTION_COLUMNS if _clean(row.get(key))]

    correct = row.get('correct_answer')
    if isinstance(correct, dict):
        correct = json.dumps(correct, sort_keys=True)
    correct = _clean(correct) or None

    if qtype in Question.AUTO_GRADED_TYPES and not correct:
        raise ValueError("'correct_answer' is required")
    if qtype == 'matching' and AnswerGrader.decode_mapping(correct) is None:
        raise ValueError("'correct_answer' must be a JSON object for matching questions")

    passage_index = _clean(row.get('passage_index'))
    passage_index = int(float(passage_index)) if passage_index else None
    if passage_index is not None and passage_index < 0:
        raise ValueError("'passage_index' must be zero or greater")

    return {
        'type': qtype,
        'content': content,
        'options': options or None,
        'correct_answer': correct,
        'passage_index': passage_index,
        'audio_path': _clean(row.get('audio_path')) or None,
    }


class QuestionImportService:

    @staticmethod
    def import_questions(test, upload):
        rows = read_rows(upload)
        if not rows:
            raise ValidationError('No questions found in file')

        questions_data = []
        errors = []
        for row_num, row in enumerate(rows, 1):
            try:
                questions_data.append(build_question(row))
            except (ValueError, TypeError, OverflowError) as e:
                errors.append(f"Row {row_num}: {str(e)}")

        if errors:
            raise ValidationError(f'{len(errors)} rows failed validation', fields={'rows': errors})

        with transaction.atomic():
            created = [Question.objects.create(test=test, **data) for data in questions_data]

        logger.info(f"Imported {len(created)} questions into test {test.id}")
        return created
