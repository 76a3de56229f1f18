from django.contrib import admin
from .models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ('verb', 'actor', 'message', 'content_type', 'object_id', 'created_at')
    list_filter = ('verb', 'created_at')
    search_fields = ('message', 'actor__username')
    readonly_fields = ('actor', 'verb', 'message', 'content_type', 'object_id', 'metadata', 'created_at')

    def has_change_permission(self, request, obj=None):
        return False
