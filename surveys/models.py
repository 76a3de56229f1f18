from django.conf import settings
from django.db import models


class Survey(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField()
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    is_anonymous = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_surveys",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "surveys"
        ordering = ["-created_at"]

    def __str__(self):
        return self.title


class SurveyQuestion(models.Model):
    TYPE_TEXT = "text"
    TYPE_TEXTAREA = "textarea"
    TYPE_RADIO = "radio"
    TYPE_CHECKBOX = "checkbox"
    TYPE_SELECT = "select"
    TYPE_RATING = "rating"

    TYPE_CHOICES = [
        (TYPE_TEXT, "Short Text"),
        (TYPE_TEXTAREA, "Long Text"),
        (TYPE_RADIO, "Single Choice"),
        (TYPE_CHECKBOX, "Multiple Choice"),
        (TYPE_SELECT, "Dropdown"),
        (TYPE_RATING, "Rating (1-5)"),
    ]

    # Types answered by picking from ``options``
    CHOICE_TYPES = frozenset({TYPE_RADIO, TYPE_CHECKBOX, TYPE_SELECT})

    survey = models.ForeignKey(Survey, on_delete=models.CASCADE, related_name="questions")
    question_text = models.TextField()
    question_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_TEXT)
    options = models.JSONField(default=list, blank=True)
    is_required = models.BooleanField(default=False)
    question_order = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "survey_questions"
        ordering = ["question_order", "id"]

    def __str__(self):
        return f"Q{self.question_order}: {self.question_text[:50]}"


class SurveyResponse(models.Model):
    """
    One answer to one question. ``user`` is null on anonymous surveys;
    rating answers are stored in ``response_value``.
    """
    survey = models.ForeignKey(Survey, on_delete=models.CASCADE, related_name="responses")
    question = models.ForeignKey(SurveyQuestion, on_delete=models.CASCADE, related_name="responses")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="survey_responses",
    )
    response_text = models.TextField(blank=True, default="")
    response_value = models.PositiveSmallIntegerField(null=True, blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "survey_responses"
        indexes = [
            models.Index(fields=["survey", "user"], name="response_survey_user_idx"),
        ]

    def __str__(self):
        return f"Response to {self.question_id} by {self.user_id or 'anonymous'}"
