from django.contrib import admin

from .models import Test, Passage, Question, Attempt, Answer


class PassageInline(admin.TabularInline):
    model = Passage
    extra = 0


class QuestionInline(admin.StackedInline):
    model = Question
    extra = 0


@admin.register(Test)
class TestAdmin(admin.ModelAdmin):
    list_display = ['title', 'module', 'duration_minutes', 'active', 'created_at']
    list_filter = ['module', 'active']
    search_fields = ['title']
    inlines = [PassageInline, QuestionInline]


@admin.register(Attempt)
class AttemptAdmin(admin.ModelAdmin):
    list_display = ['user', 'test', 'status', 'start_time', 'end_time', 'score']
    list_filter = ['status', 'test__module']


@admin.register(Answer)
class AnswerAdmin(admin.ModelAdmin):
    list_display = ['attempt', 'question', 'is_correct', 'score', 'ai_status', 'graded_by']
    list_filter = ['ai_status', 'question__type']


admin.site.register(Question)
admin.site.register(Passage)
