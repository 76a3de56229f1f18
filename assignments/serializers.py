from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers

from core.serializers import (
    CleanTextMixin,
    OptionalDateTimeField,
    choice_field,
    description_field,
    title_field,
)
from projects.models import Project
from users.roles import PROGRAM_MEMBER_ROLES
from .models import Assignment, AssignmentSubmission

User = get_user_model()


class AssigneeField(serializers.PrimaryKeyRelatedField):
    default_error_messages = {
        "required": "Please select a participant to assign this to.",
        "null": "Please select a participant to assign this to.",
        "does_not_exist": "Selected user not found or inactive.",
        "incorrect_type": "Please select a participant to assign this to.",
    }

    def get_queryset(self):
        return User.objects.filter(is_active=True)

    def to_internal_value(self, data):
        if data in ("", None):
            self.fail("required")
        user = super().to_internal_value(data)
        if user.role not in PROGRAM_MEMBER_ROLES:
            raise serializers.ValidationError(
                "Assignments can only be assigned to participants, mentors, or volunteers."
            )
        return user


class AssignmentWriteSerializer(CleanTextMixin, serializers.ModelSerializer):
    """Create / edit form for an assignment."""
    title = title_field("Assignment")
    description = description_field("Assignment")
    assigned_to = AssigneeField()
    project = serializers.PrimaryKeyRelatedField(
        queryset=Project.objects.all(),
        required=False,
        allow_null=True,
        error_messages={"does_not_exist": "Selected project not found."},
    )
    priority = choice_field(Assignment.PRIORITY_CHOICES, "Please select a valid priority level.", required=False)
    status = choice_field(Assignment.STATUS_CHOICES, "Please select a valid assignment status.", required=False)
    due_date = OptionalDateTimeField(error_messages={"invalid": "Invalid due date format."})
    points = serializers.IntegerField(
        required=False,
        min_value=0,
        max_value=Assignment.MAX_POINTS,
        error_messages={
            "min_value": "Points must be between 0 and 1000.",
            "max_value": "Points must be between 0 and 1000.",
            "invalid": "Points must be between 0 and 1000.",
        },
    )

    class Meta:
        model = Assignment
        fields = ["title", "description", "assigned_to", "project", "priority", "status", "due_date", "points"]

    def to_internal_value(self, data):
        # An empty project select means "no project"
        if hasattr(data, "get") and data.get("project") == "":
            data = data.copy()
            data["project"] = None
        return super().to_internal_value(data)

    def validate_due_date(self, value):
        if value is not None and value <= timezone.now():
            raise serializers.ValidationError("Due date must be in the future.")
        return value


class AssignmentSerializer(serializers.ModelSerializer):
    assigned_to_name = serializers.CharField(source="assigned_to.full_name", read_only=True)
    assigned_by_name = serializers.SerializerMethodField()
    project_title = serializers.SerializerMethodField()
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Assignment
        fields = [
            "id",
            "title",
            "description",
            "project",
            "project_title",
            "assigned_by",
            "assigned_by_name",
            "assigned_to",
            "assigned_to_name",
            "due_date",
            "priority",
            "status",
            "points",
            "is_overdue",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_assigned_by_name(self, obj):
        return obj.assigned_by.full_name if obj.assigned_by else None

    def get_project_title(self, obj):
        return obj.project.title if obj.project else None

    def get_is_overdue(self, obj):
        return bool(
            obj.due_date
            and obj.due_date < timezone.now()
            and obj.status not in (Assignment.STATUS_COMPLETED, Assignment.STATUS_REVIEWED)
        )


class SubmissionSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    reviewed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = AssignmentSubmission
        fields = [
            "id",
            "assignment",
            "user",
            "username",
            "submission_text",
            "submitted_at",
            "grade",
            "feedback",
            "reviewed_by",
            "reviewed_by_name",
            "reviewed_at",
        ]
        read_only_fields = fields

    def get_reviewed_by_name(self, obj):
        return obj.reviewed_by.full_name if obj.reviewed_by else None


class SubmitSerializer(CleanTextMixin, serializers.Serializer):
    submission_text = serializers.CharField(
        min_length=10,
        error_messages={
            "required": "Please provide a text submission.",
            "blank": "Please provide a text submission.",
            "min_length": "Text submission must be at least 10 characters long.",
        },
    )


class ReviewSerializer(CleanTextMixin, serializers.Serializer):
    grade = serializers.IntegerField(
        required=False,
        allow_null=True,
        error_messages={"invalid": "Grade must be a whole number."},
    )
    feedback = serializers.CharField(
        min_length=10,
        error_messages={
            "required": "Feedback is required for grading.",
            "blank": "Feedback is required for grading.",
            "min_length": "Feedback must be at least 10 characters long.",
        },
    )

    def validate_grade(self, value):
        assignment = self.context["assignment"]
        if value is not None and not 0 <= value <= assignment.max_grade:
            raise serializers.ValidationError(
                f"Grade must be between 0 and {assignment.max_grade} points."
            )
        return value
