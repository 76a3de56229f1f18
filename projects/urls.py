from django.urls import path

from .views import ProjectActionView, ProjectDetailView, ProjectEditView, ProjectListCreateView

urlpatterns = [
    path("", ProjectListCreateView.as_view(), name="project-list"),
    path("actions/", ProjectActionView.as_view(), name="project-actions"),
    path("<int:project_id>/", ProjectDetailView.as_view(), name="project-detail"),
    path("<int:project_id>/edit/", ProjectEditView.as_view(), name="project-edit"),
]
