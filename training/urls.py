from django.urls import path

from .views import (
    TrainingAttendanceView,
    TrainingCalendarView,
    TrainingSessionDetailView,
    TrainingSessionEditView,
    TrainingSessionListCreateView,
)

urlpatterns = [
    path("", TrainingSessionListCreateView.as_view(), name="training-session-list"),
    path("calendar/", TrainingCalendarView.as_view(), name="training-calendar"),
    path("<int:session_id>/", TrainingSessionDetailView.as_view(), name="training-session-detail"),
    path("<int:session_id>/edit/", TrainingSessionEditView.as_view(), name="training-session-edit"),
    path("<int:session_id>/attendance/", TrainingAttendanceView.as_view(), name="training-attendance"),
]
