import logging

from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.constants import MSG_FORBIDDEN
from core.forms import bracket_dict, indexed_rows
from core.pagination import paginate, pagination_meta
from core.permissions import require_permission
from core.views import action_response, get_object_or_404, save_error, validation_error
from users.roles import PERM_SURVEY_MANAGEMENT
from . import services
from .models import Survey
from .serializers import SurveyQuestionSerializer, SurveySerializer, SurveyWriteSerializer

logger = logging.getLogger("cos.surveys")

_SURVEY_FIELDS = ("title", "description", "start_date", "end_date", "is_active", "is_anonymous")


def survey_payload(data) -> dict:
    """Normalise a JSON or form-encoded survey form into serializer input."""
    payload = {key: data.get(key) for key in _SURVEY_FIELDS if key in data}
    if hasattr(data, "getlist"):
        # unchecked checkboxes are simply absent from a form post
        for key in ("is_active", "is_anonymous"):
            payload.setdefault(key, False)
    payload["questions"] = indexed_rows(data, "questions")
    return payload


class SurveyListCreateView(APIView):
    """
    GET  /api/surveys/?search=&page=
    POST /api/surveys/   (survey_management)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = services.visible_surveys(request.user, request.query_params)
        page = paginate(qs, request.query_params.get("page"), services.PER_PAGE)

        return Response({
            "results": SurveySerializer(page["items"], many=True, context={"request": request}).data,
            "pagination": pagination_meta(page),
            "filters": {"search": request.query_params.get("search", "")},
            "can_manage": services.can_manage_surveys(request.user),
        })

    def post(self, request):
        if not services.can_manage_surveys(request.user):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        serializer = SurveyWriteSerializer(data=survey_payload(request.data))
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            survey = services.save_survey(request.user, dict(serializer.validated_data))
        except DatabaseError:
            return save_error(logger, "Survey creation", user=request.user.pk)

        return Response(
            {
                "success": True,
                "message": "Survey created successfully.",
                "message_type": "success",
                "survey": SurveySerializer(survey, context={"request": request}).data,
                "redirect": reverse("survey-list"),
            },
            status=status.HTTP_201_CREATED,
        )


class SurveyEditView(APIView):
    """
    GET  /api/surveys/<id>/edit/   current values, questions included
    POST /api/surveys/<id>/edit/   save and replace the question list
    """
    permission_classes = [IsAuthenticated, require_permission(PERM_SURVEY_MANAGEMENT)]

    def _load(self, request, survey_id):
        survey = get_object_or_404(Survey, "Survey", pk=survey_id)
        if not services.can_edit_survey(request.user, survey):
            self.permission_denied(request, message="Access denied.")
        return survey

    def get(self, request, survey_id):
        survey = self._load(request, survey_id)
        return Response({
            "survey": SurveySerializer(survey, context={"request": request}).data,
            "questions": SurveyQuestionSerializer(survey.questions.all(), many=True).data,
        })

    def post(self, request, survey_id):
        survey = self._load(request, survey_id)

        serializer = SurveyWriteSerializer(survey, data=survey_payload(request.data))
        if not serializer.is_valid():
            return validation_error(serializer.errors, request.data)

        try:
            survey = services.save_survey(request.user, dict(serializer.validated_data), survey=survey)
        except DatabaseError:
            return save_error(logger, "Survey update", survey=survey.pk)

        return Response({
            "success": True,
            "message": "Survey updated successfully.",
            "message_type": "success",
            "survey": SurveySerializer(survey, context={"request": request}).data,
            "redirect": reverse("survey-list"),
        })


class SurveyTakeView(APIView):
    """
    GET  /api/surveys/<id>/take/
    POST /api/surveys/<id>/take/   responses[<question_id>]=<answer>
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, survey_id):
        survey = get_object_or_404(Survey.objects.select_related("created_by"), "Survey", pk=survey_id)
        reason = services.availability_error(survey)
        responded = services.has_responded(survey, request.user)

        return Response({
            "survey": SurveySerializer(survey, context={"request": request}).data,
            "questions": SurveyQuestionSerializer(survey.questions.all(), many=True).data,
            "has_responded": responded,
            "can_take": reason is None and not responded,
            "message": reason,
        })

    def post(self, request, survey_id):
        survey = get_object_or_404(Survey, "Survey", pk=survey_id)
        answers = bracket_dict(request.data, "responses")

        try:
            result = services.submit_responses(survey, request.user, answers)
        except DatabaseError:
            return save_error(logger, "Survey submission", survey=survey.pk, user=request.user.pk)

        if not result.ok and result.data.get("errors"):
            return validation_error(result.data["errors"], request.data)
        return action_response(result, redirect=reverse("survey-list") if result.ok else None)


class SurveyResultsView(APIView):
    """
    GET /api/surveys/<id>/results/   (creator or survey_management)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, survey_id):
        survey = get_object_or_404(Survey.objects.select_related("created_by"), "Survey", pk=survey_id)
        if not services.can_view_results(request.user, survey):
            self.permission_denied(request, message=MSG_FORBIDDEN)

        return Response({
            "survey": SurveySerializer(survey, context={"request": request}).data,
            "results": services.survey_results(survey),
        })
