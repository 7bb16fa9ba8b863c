from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r'tests', views.TestViewSet, basename='test')
router.register(r'passages', views.PassageViewSet, basename='passage')
router.register(r'questions', views.QuestionViewSet, basename='question')
router.register(r'attempts', views.AttemptViewSet, basename='attempt')

urlpatterns = [
    path('answers/<uuid:answer_id>/', views.update_answer, name='answer-update'),
    path('answers/<uuid:answer_id>/ai-score/', views.ai_score_answer, name='answer-ai-score'),
    path('translate/to-arabic/', views.translate_to_arabic, name='translate-to-arabic'),
    path('translate/to-english/', views.translate_to_english, name='translate-to-english'),
    path('admin/stats/', views.admin_stats, name='admin-stats'),
    path('', include(router.urls)),
]
