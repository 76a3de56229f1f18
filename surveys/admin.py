from django.contrib import admin
from .models import Survey, SurveyQuestion, SurveyResponse


class SurveyQuestionInline(admin.TabularInline):
    model = SurveyQuestion
    extra = 0


@admin.register(Survey)
class SurveyAdmin(admin.ModelAdmin):
    list_display = ('title', 'is_active', 'is_anonymous', 'start_date', 'end_date', 'created_by', 'created_at')
    list_filter = ('is_active', 'is_anonymous')
    search_fields = ('title', 'description')
    inlines = [SurveyQuestionInline]


@admin.register(SurveyResponse)
class SurveyResponseAdmin(admin.ModelAdmin):
    list_display = ('survey', 'question', 'user', 'response_value', 'submitted_at')
    list_filter = ('survey',)
    readonly_fields = ('submitted_at',)
