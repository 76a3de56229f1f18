from rest_framework import serializers

from core.forms import is_truthy
from core.sanitizers import sanitize_text, split_options
from core.serializers import (
    CleanTextMixin,
    DateRangeMixin,
    OptionalDateTimeField,
    description_field,
    title_field,
)
from .models import Survey, SurveyQuestion


class SurveyWriteSerializer(CleanTextMixin, DateRangeMixin, serializers.ModelSerializer):
    """
    Create / edit form for a survey with its full question list.

    ``questions`` is replaced wholesale on save; each row is
    {question_text, question_type, options, is_required}.
    """
    title = title_field("Survey")
    description = description_field("Survey")
    start_date = OptionalDateTimeField()
    end_date = OptionalDateTimeField()
    is_active = serializers.BooleanField(required=False)
    is_anonymous = serializers.BooleanField(required=False)
    questions = serializers.ListField(
        child=serializers.DictField(),
        allow_empty=False,
        error_messages={
            "required": "At least one question is required.",
            "empty": "At least one question is required.",
            "not_a_list": "At least one question is required.",
        },
    )

    class Meta:
        model = Survey
        fields = ["title", "description", "start_date", "end_date", "is_active", "is_anonymous", "questions"]

    def validate_questions(self, rows):
        types = dict(SurveyQuestion.TYPE_CHOICES)
        errors = []
        cleaned = []

        for index, row in enumerate(rows, start=1):
            text = sanitize_text(row.get("question_text"))
            question_type = row.get("question_type") or SurveyQuestion.TYPE_TEXT
            options = split_options(row.get("options"))

            if not text:
                errors.append(f"Question {index} text is required.")
            if question_type not in types:
                errors.append(f"Question {index} has an invalid question type.")
            elif question_type in SurveyQuestion.CHOICE_TYPES and not options:
                errors.append(f"Question {index} requires options for the selected question type.")

            cleaned.append({
                "question_text": text,
                "question_type": question_type,
                "options": options if question_type in SurveyQuestion.CHOICE_TYPES else [],
                "is_required": is_truthy(row.get("is_required")),
                "question_order": index,
            })

        if errors:
            raise serializers.ValidationError(errors)
        return cleaned


class SurveyQuestionSerializer(serializers.ModelSerializer):
    class Meta:
        model = SurveyQuestion
        fields = ["id", "question_text", "question_type", "options", "is_required", "question_order"]
        read_only_fields = fields


class SurveySerializer(serializers.ModelSerializer):
    created_by_name = serializers.SerializerMethodField()
    question_count = serializers.SerializerMethodField()
    response_count = serializers.SerializerMethodField()
    has_responded = serializers.SerializerMethodField()

    class Meta:
        model = Survey
        fields = [
            "id",
            "title",
            "description",
            "start_date",
            "end_date",
            "is_active",
            "is_anonymous",
            "created_by",
            "created_by_name",
            "question_count",
            "response_count",
            "has_responded",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        return obj.created_by.full_name if obj.created_by else None

    def get_question_count(self, obj):
        annotated = getattr(obj, "_question_count", None)
        if annotated is not None:
            return annotated
        return obj.questions.count()

    def get_response_count(self, obj):
        annotated = getattr(obj, "_response_count", None)
        if annotated is not None:
            return annotated
        return obj.responses.count()

    def get_has_responded(self, obj):
        annotated = getattr(obj, "_has_responded", None)
        if annotated is not None:
            return annotated
        request = self.context.get("request")
        if obj.is_anonymous or not request or not request.user.is_authenticated:
            return False
        return obj.responses.filter(user=request.user).exists()
