from django.urls import path

from .views import (
    AssignmentActionView,
    AssignmentDetailView,
    AssignmentListCreateView,
    AssignmentReviewView,
    AssignmentSubmitView,
)

urlpatterns = [
    path("", AssignmentListCreateView.as_view(), name="assignment-list"),
    path("actions/", AssignmentActionView.as_view(), name="assignment-actions"),
    path("<int:assignment_id>/", AssignmentDetailView.as_view(), name="assignment-detail"),
    path("<int:assignment_id>/submit/", AssignmentSubmitView.as_view(), name="assignment-submit"),
    path("<int:assignment_id>/review/", AssignmentReviewView.as_view(), name="assignment-review"),
]
