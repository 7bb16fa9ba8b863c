from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import UserProfile, OneTimeCode


@admin.register(UserProfile)
class UserProfileAdmin(UserAdmin):
    list_display = ['username', 'email', 'role', 'verified', 'is_active', 'date_joined']
    list_filter = ['role', 'verified', 'is_active']
    fieldsets = UserAdmin.fieldsets + (
        ('IELTS', {'fields': ('role', 'verified')}),
    )


@admin.register(OneTimeCode)
class OneTimeCodeAdmin(admin.ModelAdmin):
    list_display = ['user', 'purpose', 'created_at', 'expires_at', 'consumed_at']
    list_filter = ['purpose']
    readonly_fields = ['code_hash']
