from django.contrib import admin
from .models import SessionAttendance, TrainingSession


class SessionAttendanceInline(admin.TabularInline):
    model = SessionAttendance
    extra = 0
    readonly_fields = ('registration_date', 'attendance_date')


@admin.register(TrainingSession)
class TrainingSessionAdmin(admin.ModelAdmin):
    list_display = ('title', 'session_date', 'status', 'instructor', 'max_participants', 'location')
    list_filter = ('status',)
    search_fields = ('title', 'description', 'location')
    inlines = [SessionAttendanceInline]


@admin.register(SessionAttendance)
class SessionAttendanceAdmin(admin.ModelAdmin):
    list_display = ('session', 'user', 'status', 'registration_date', 'attendance_date')
    list_filter = ('status',)
    search_fields = ('user__username', 'session__title')
