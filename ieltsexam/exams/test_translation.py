"""
English/Arabic translation endpoint tests
"""
from unittest.mock import patch

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient, APITestCase

from ieltsexam.exceptions import UpstreamError

UserProfile = get_user_model()


@patch('exams.views.AIScoringClient')
class TranslationAPITests(APITestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = UserProfile.objects.create_user(username='nour', email='nour@example.com', password='strongpass1')
        self.client.force_authenticate(self.user)

    def test_to_arabic(self, client_class):
        client_class.return_value.translate.return_value = 'المدن تنمو بسرعة'

        response = self.client.post('/api/translate/to-arabic/', {'text': 'Cities are growing fast'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'translation': 'المدن تنمو بسرعة'})
        client_class.return_value.translate.assert_called_once_with('Cities are growing fast', 'ar')

    def test_to_english(self, client_class):
        client_class.return_value.translate.return_value = 'Cities are growing fast'

        response = self.client.post('/api/translate/to-english/', {'text': 'المدن تنمو بسرعة'}, format='json')

        self.assertEqual(response.status_code, 200)
        client_class.return_value.translate.assert_called_once_with('المدن تنمو بسرعة', 'en')

    def test_text_is_required(self, client_class):
        response = self.client.post('/api/translate/to-arabic/', {}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertIn('text', response.data['fields'])
        client_class.return_value.translate.assert_not_called()

    def test_provider_failure(self, client_class):
        client_class.return_value.translate.side_effect = UpstreamError(
            'Failed to translate text', provider_detail='timeout'
        )

        response = self.client.post('/api/translate/to-arabic/', {'text': 'Hello'}, format='json')

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['code'], 'upstream_error')

    def test_requires_login(self, client_class):
        self.client.force_authenticate(None)
        response = self.client.post('/api/translate/to-arabic/', {'text': 'Hello'}, format='json')
        self.assertIn(response.status_code, (401, 403))
