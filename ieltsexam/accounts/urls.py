from django.urls import path

from . import auth

urlpatterns = [
    path('register/', auth.register, name='auth-register'),
    path('login/', auth.login, name='auth-login'),
    path('logout/', auth.logout, name='auth-logout'),
    path('user/', auth.current_user, name='auth-user'),
    path('verify-email/', auth.verify_email, name='auth-verify-email'),
    path('resend-verification/', auth.resend_verification, name='auth-resend-verification'),
    path('forgot-password/', auth.forgot_password, name='auth-forgot-password'),
    path('reset-password/', auth.reset_password, name='auth-reset-password'),
    path('users/<uuid:user_id>/role/', auth.update_user_role, name='auth-user-role'),
]
