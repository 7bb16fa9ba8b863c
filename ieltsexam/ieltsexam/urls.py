"""
URL configuration for ieltsexam project.

All API routes live under /api/; each app contributes its own urls module.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include('accounts.urls')),
    path('api/', include('exams.urls')),
    path('api/', include('learner.urls')),
]

# Serve uploaded audio in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
