from django.urls import path

from . import views

urlpatterns = [
    # Vocabulary
    path('vocabulary/', views.vocabulary_list, name='vocabulary-list'),
    path('vocabulary/review/', views.vocabulary_due, name='vocabulary-due'),
    path('vocabulary/analyze/', views.analyze_vocabulary, name='vocabulary-analyze'),
    path('vocabulary/<uuid:vocabulary_id>/', views.vocabulary_detail, name='vocabulary-detail'),
    path('vocabulary/<uuid:vocabulary_id>/review/', views.review_vocabulary, name='vocabulary-review'),

    # Gamification
    path('gamification/user-achievement/', views.user_achievement, name='gamification-achievement'),
    path('gamification/login-streak/', views.login_streak, name='gamification-login-streak'),
    path('gamification/leaderboard/', views.leaderboard, name='gamification-leaderboard'),
    path('gamification/badges/', views.badges, name='gamification-badges'),
    path('gamification/points-history/', views.points_history, name='gamification-points-history'),

    # Notifications
    path('notifications/', views.notification_list, name='notification-list'),
    path('notifications/unread-count/', views.unread_count, name='notification-unread-count'),
    path('notifications/mark-all-read/', views.mark_all_read, name='notification-mark-all-read'),
    path('notifications/<uuid:notification_id>/', views.delete_notification, name='notification-delete'),
    path('notifications/<uuid:notification_id>/read/', views.mark_notification_read, name='notification-read'),
]
