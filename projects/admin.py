from django.contrib import admin
from .models import Project, ProjectParticipant


class ProjectParticipantInline(admin.TabularInline):
    model = ProjectParticipant
    extra = 0


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'priority', 'start_date', 'end_date', 'created_by', 'created_at')
    list_filter = ('status', 'priority')
    search_fields = ('title', 'description')
    inlines = [ProjectParticipantInline]
