# surveys/services.py
import logging
from collections import Counter
from typing import Dict, List

from django.db import transaction
from django.db.models import Avg, Count, Exists, OuterRef, Q
from django.utils import timezone

from core.constants import ACTIVITY_SURVEY_CREATED, ACTIVITY_SURVEY_SUBMITTED, ACTIVITY_SURVEY_UPDATED
from core.services import ActionResult, ActivityService
from notifications import services as notifier
from users.roles import PERM_SURVEY_MANAGEMENT, PERM_USER_MANAGEMENT, has_permission
from .models import Survey, SurveyQuestion, SurveyResponse

logger = logging.getLogger("cos.surveys")

PER_PAGE = 12

RATING_MIN = 1
RATING_MAX = 5


# -----------------------------------------
# Access rules
# -----------------------------------------
def can_manage_surveys(user) -> bool:
    return has_permission(user, PERM_SURVEY_MANAGEMENT)


def can_edit_survey(user, survey) -> bool:
    return survey.created_by_id == user.pk or has_permission(user, PERM_USER_MANAGEMENT)


def can_view_results(user, survey) -> bool:
    return survey.created_by_id == user.pk or can_manage_surveys(user)


def availability_error(survey, current=None):
    """Message explaining why the survey cannot be taken now, or None."""
    current = current or timezone.now()
    if not survey.is_active:
        return "This survey is not currently active."
    if survey.start_date and survey.start_date > current:
        return "This survey is not yet available."
    if survey.end_date and survey.end_date < current:
        return "This survey has ended."
    return None


def has_responded(survey, user) -> bool:
    """Anonymous surveys keep no link to the user, so they never count as answered."""
    if survey.is_anonymous:
        return False
    return SurveyResponse.objects.filter(survey=survey, user=user).exists()


# -----------------------------------------
# Read side
# -----------------------------------------
def visible_surveys(user, params):
    qs = Survey.objects.select_related("created_by").annotate(
        _question_count=Count("questions", distinct=True),
        _response_count=Count("responses", distinct=True),
        _has_responded=Exists(SurveyResponse.objects.filter(survey=OuterRef("pk"), user=user)),
    )

    if not can_manage_surveys(user):
        current = timezone.now()
        qs = qs.filter(is_active=True).filter(
            Q(start_date__isnull=True) | Q(start_date__lte=current),
            Q(end_date__isnull=True) | Q(end_date__gte=current),
        )

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))

    return qs.order_by("-created_at", "-id")


def survey_results(survey) -> dict:
    """Per-question counts, rating averages and option tallies."""
    questions = []
    for question in survey.questions.all():
        answers = SurveyResponse.objects.filter(question=question)
        item = {
            "id": question.pk,
            "question_text": question.question_text,
            "question_type": question.question_type,
            "response_count": answers.count(),
        }

        if question.question_type == SurveyQuestion.TYPE_RATING:
            average = answers.aggregate(avg=Avg("response_value"))["avg"]
            item["average"] = round(average, 2) if average is not None else None
            tally = Counter(answers.values_list("response_value", flat=True))
            item["distribution"] = {str(value): tally.get(value, 0) for value in range(RATING_MIN, RATING_MAX + 1)}
        elif question.question_type in SurveyQuestion.CHOICE_TYPES:
            tally = Counter()
            for text in answers.values_list("response_text", flat=True):
                picked = text.split(", ") if question.question_type == SurveyQuestion.TYPE_CHECKBOX else [text]
                tally.update(picked)
            item["options"] = {option: tally.get(option, 0) for option in question.options}
        else:
            item["answers"] = list(answers.order_by("-submitted_at").values_list("response_text", flat=True))

        questions.append(item)

    respondents = (
        max((q["response_count"] for q in questions), default=0)
        if survey.is_anonymous
        else survey.responses.values("user").distinct().count()
    )
    return {"respondents": respondents, "questions": questions}


# -----------------------------------------
# Create / edit
# -----------------------------------------
def save_survey(user, data: dict, survey=None) -> Survey:
    """
    Insert or update the survey and replace its questions in one
    transaction. Replacing questions drops their earlier responses.
    """
    questions = data.pop("questions")
    is_new = survey is None

    with transaction.atomic():
        if is_new:
            survey = Survey.objects.create(created_by=user, **data)
        else:
            for attr, value in data.items():
                setattr(survey, attr, value)
            survey.save()
            survey.questions.all().delete()

        SurveyQuestion.objects.bulk_create(
            [SurveyQuestion(survey=survey, **question) for question in questions]
        )

    ActivityService.log_activity(
        user,
        ACTIVITY_SURVEY_CREATED if is_new else ACTIVITY_SURVEY_UPDATED,
        survey,
        message=f"{'Created' if is_new else 'Updated'} survey: {survey.title}",
        metadata={"questions": len(questions)},
    )
    logger.info(f"Survey saved: survey={survey.id}, questions={len(questions)}, actor={user.id}")

    if is_new and survey.is_active:
        notifier.notify_survey_created(survey, user)
    return survey


# -----------------------------------------
# Taking a survey
# -----------------------------------------
def _is_blank(answer) -> bool:
    if answer is None:
        return True
    if isinstance(answer, (list, tuple)):
        return not any(str(item).strip() for item in answer)
    return not str(answer).strip()


def validate_answers(questions, answers: Dict[str, object]) -> List[str]:
    errors = []
    for number, question in enumerate(questions, start=1):
        answer = answers.get(str(question.pk))
        if _is_blank(answer):
            if question.is_required:
                errors.append(f"Question {number} is required.")
            continue

        if question.question_type == SurveyQuestion.TYPE_RATING:
            try:
                rating = int(answer)
            except (TypeError, ValueError):
                rating = None
            if rating is None or not RATING_MIN <= rating <= RATING_MAX:
                errors.append(f"Please provide a valid rating (1-5) for question {number}.")
    return errors


def _response_row(survey, question, answer, user) -> SurveyResponse:
    row = SurveyResponse(survey=survey, question=question, user=None if survey.is_anonymous else user)
    if question.question_type == SurveyQuestion.TYPE_RATING:
        row.response_value = int(answer)
    elif isinstance(answer, (list, tuple)):
        row.response_text = ", ".join(str(item).strip() for item in answer if str(item).strip())
    else:
        row.response_text = str(answer).strip()
    return row


def submit_responses(survey, user, answers: Dict[str, object]) -> ActionResult:
    """
    Validate every answer, then write one row per answered question in a
    single transaction. Any rejection leaves no rows behind.
    """
    reason = availability_error(survey)
    if reason:
        return ActionResult.error(reason)

    questions = list(survey.questions.all())
    if not questions:
        return ActionResult.error("This survey has no questions configured.")

    if has_responded(survey, user):
        return ActionResult.error("You have already completed this survey.")

    errors = validate_answers(questions, answers)
    if errors:
        return ActionResult.error(errors[0], errors=errors)

    rows = [
        _response_row(survey, question, answers[str(question.pk)], user)
        for question in questions
        if not _is_blank(answers.get(str(question.pk)))
    ]
    with transaction.atomic():
        SurveyResponse.objects.bulk_create(rows)

    ActivityService.log_activity(
        user,
        ACTIVITY_SURVEY_SUBMITTED,
        survey,
        message=f"Submitted survey: {survey.title}",
        metadata={"answers": len(rows), "anonymous": survey.is_anonymous},
    )
    notifier.notify_survey_response(survey, None if survey.is_anonymous else user)
    return ActionResult.success("Thank you for completing the survey!", answers=len(rows))
