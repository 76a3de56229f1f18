from django.urls import path

from .views import SurveyEditView, SurveyListCreateView, SurveyResultsView, SurveyTakeView

urlpatterns = [
    path("", SurveyListCreateView.as_view(), name="survey-list"),
    path("<int:survey_id>/edit/", SurveyEditView.as_view(), name="survey-edit"),
    path("<int:survey_id>/take/", SurveyTakeView.as_view(), name="survey-take"),
    path("<int:survey_id>/results/", SurveyResultsView.as_view(), name="survey-results"),
]
