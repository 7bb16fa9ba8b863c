"""
Content administration tests: tests, questions, bulk upload and dashboard stats
"""
import io
import json

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient, APITestCase
import openpyxl

from .models import Test, Question, Attempt

UserProfile = get_user_model()


class ContentTestCase(APITestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = UserProfile.objects.create_user(
            username='admin', email='admin@example.com', password='strongpass1', role='admin'
        )
        self.user = UserProfile.objects.create_user(
            username='taker', email='taker@example.com', password='strongpass1'
        )
        self.test = Test.objects.create(title='Reading 1', module='reading', duration_minutes=60)
        self.draft = Test.objects.create(title='Reading Draft', module='reading', duration_minutes=60, active=False)


class TestVisibilityTests(ContentTestCase):

    def test_test_takers_see_active_tests_only(self):
        self.client.force_authenticate(self.user)
        response = self.client.get('/api/tests/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual([t['title'] for t in response.data], ['Reading 1'])

    def test_admins_see_everything(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/tests/')
        self.assertEqual(len(response.data), 2)

    def test_filter_by_module(self):
        Test.objects.create(title='Writing 1', module='writing', duration_minutes=60)
        self.client.force_authenticate(self.user)

        response = self.client.get('/api/tests/module/writing/')
        self.assertEqual([t['title'] for t in response.data], ['Writing 1'])

        bad = self.client.get('/api/tests/module/grammar/')
        self.assertEqual(bad.status_code, 400)

    def test_only_admins_create_tests(self):
        payload = {'title': 'Listening 1', 'module': 'listening', 'durationMinutes': 30}

        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.post('/api/tests/', payload, format='json').status_code, 403)

        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/tests/', payload, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['durationMinutes'], 30)

    def test_anonymous_is_401(self):
        self.assertEqual(self.client.get('/api/tests/').status_code, 401)


class QuestionTests(ContentTestCase):

    def setUp(self):
        super().setUp()
        Question.objects.create(test=self.test, type='fill_blank', content='Script type', correct_answer='logographic')

    def test_answer_key_hidden_from_test_takers(self):
        self.client.force_authenticate(self.user)
        response = self.client.get(f'/api/tests/{self.test.id}/questions/')

        self.assertEqual(response.status_code, 200)
        self.assertNotIn('correctAnswer', response.data[0])

    def test_answer_key_visible_to_admins(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get(f'/api/tests/{self.test.id}/questions/')
        self.assertEqual(response.data[0]['correctAnswer'], 'logographic')

    def test_closed_question_requires_key(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/questions/', {
            'testId': str(self.test.id), 'type': 'multiple_choice', 'content': 'Pick one', 'options': ['a', 'b'],
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertIn('correctAnswer', response.data['fields'])

    def test_matching_key_accepts_object(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/questions/', {
            'testId': str(self.test.id),
            'type': 'matching',
            'content': 'Match',
            'correctAnswer': {'b': '2', 'a': '1'},
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(json.loads(response.data['correctAnswer']), {'a': '1', 'b': '2'})


class BulkUploadTests(ContentTestCase):

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(self.admin)
        self.url = f'/api/tests/{self.test.id}/bulk-upload-questions/'

    def test_csv_upload(self):
        csv_text = (
            'type,content,option_a,option_b,option_c,correct_answer,passage_index\n'
            'multiple_choice,What is the capacity?,3-5 items,7±2 items,Unlimited,7±2 items,2\n'
            'fill_blank,The script is ____,,,,logographic,1\n'
            'essay,Discuss both views,,,,,\n'
        )
        upload = SimpleUploadedFile('questions.csv', csv_text.encode('utf-8'), content_type='text/csv')

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['count'], 3)
        question = Question.objects.get(test=self.test, type='multiple_choice')
        self.assertEqual(question.options, ['3-5 items', '7±2 items', 'Unlimited'])
        self.assertEqual(question.passage_index, 2)

    def test_json_upload_with_matching(self):
        rows = [
            {'type': 'matching', 'content': 'Match', 'options': {'items': ['a'], 'matches': ['1']},
             'correct_answer': {'a': '1'}},
            {'type': 'true_false_ng', 'content': 'Claim', 'options': ['True', 'False', 'Not Given'],
             'correct_answer': 'Not Given'},
        ]
        upload = SimpleUploadedFile('questions.json', json.dumps(rows).encode('utf-8'), content_type='application/json')

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(Question.objects.filter(test=self.test).count(), 2)

    def test_xlsx_upload(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(['type', 'content', 'correct_answer', 'audio_path'])
        ws.append(['fill_blank', 'Property Address:', '42 Oak Avenue', 'listening/section1.mp3'])
        ws.append(['short_answer', 'Monthly rent?', 1250, 'listening/section1.mp3'])
        buffer = io.BytesIO()
        wb.save(buffer)
        upload = SimpleUploadedFile(
            'questions.xlsx', buffer.getvalue(),
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        )

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 201)
        rent = Question.objects.get(test=self.test, type='short_answer')
        self.assertEqual(rent.correct_answer, '1250')
        self.assertEqual(rent.audio_path, 'listening/section1.mp3')

    def test_bad_row_rejects_whole_file(self):
        csv_text = (
            'type,content,correct_answer\n'
            'fill_blank,Good row,answer\n'
            'fill_blank,Missing key,\n'
            'crossword,Unknown type,x\n'
        )
        upload = SimpleUploadedFile('questions.csv', csv_text.encode('utf-8'), content_type='text/csv')

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(len(response.data['fields']['rows']), 2)
        self.assertTrue(response.data['fields']['rows'][0].startswith('Row 2:'))
        self.assertFalse(Question.objects.filter(test=self.test).exists())

    def test_non_utf8_csv_is_rejected(self):
        csv_text = 'type,content,correct_answer\nfill_blank,Caf\xe9 opening hours,9am\n'
        upload = SimpleUploadedFile('questions.csv', csv_text.encode('latin-1'), content_type='text/csv')

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'CSV file must be UTF-8 encoded')
        self.assertFalse(Question.objects.filter(test=self.test).exists())

    def test_negative_passage_index_is_a_row_error(self):
        csv_text = (
            'type,content,correct_answer,passage_index\n'
            'fill_blank,Good row,answer,0\n'
            'fill_blank,Bad passage,answer,-1\n'
        )
        upload = SimpleUploadedFile('questions.csv', csv_text.encode('utf-8'), content_type='text/csv')

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['fields']['rows'], ["Row 2: 'passage_index' must be zero or greater"])
        self.assertFalse(Question.objects.filter(test=self.test).exists())

    def test_unsupported_file_type(self):
        upload = SimpleUploadedFile('questions.txt', b'hello', content_type='text/plain')
        response = self.client.post(self.url, {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, 400)

    def test_test_taker_cannot_upload(self):
        self.client.force_authenticate(self.user)
        upload = SimpleUploadedFile('questions.csv', b'type,content\n', content_type='text/csv')
        response = self.client.post(self.url, {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, 403)


class AdminStatsTests(ContentTestCase):

    def test_stats(self):
        Attempt.objects.create(user=self.user, test=self.test, status='completed')
        Attempt.objects.create(user=self.user, test=self.test, status='in_progress')
        self.client.force_authenticate(self.admin)

        response = self.client.get('/api/admin/stats/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['totalUsers'], 2)
        self.assertEqual(response.data['totalTests'], 2)
        self.assertEqual(response.data['activeTests'], 1)
        self.assertEqual(response.data['modules']['reading'], {'tests': 2, 'attempts': 2, 'completedAttempts': 1})
        self.assertEqual(response.data['modules']['speaking']['tests'], 0)

    def test_stats_admin_only(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get('/api/admin/stats/').status_code, 403)
