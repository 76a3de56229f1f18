from rest_framework import serializers

from core.serializers import (
    CleanTextMixin,
    DateRangeMixin,
    OptionalDateField,
    choice_field,
    description_field,
    title_field,
)
from .models import Project, ProjectParticipant


class ProjectWriteSerializer(CleanTextMixin, DateRangeMixin, serializers.ModelSerializer):
    """Create / edit form for a project."""
    title = title_field("Project")
    description = description_field("Project")
    status = choice_field(Project.STATUS_CHOICES, "Invalid project status.", required=False)
    priority = choice_field(Project.PRIORITY_CHOICES, "Invalid priority level.", required=False)
    start_date = OptionalDateField()
    end_date = OptionalDateField()

    class Meta:
        model = Project
        fields = ["title", "description", "status", "priority", "start_date", "end_date"]


class ParticipantSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    full_name = serializers.CharField(source="user.full_name", read_only=True)
    email = serializers.CharField(source="user.email", read_only=True)
    user_role = serializers.CharField(source="user.role", read_only=True)

    class Meta:
        model = ProjectParticipant
        fields = ["id", "user", "username", "full_name", "email", "user_role", "role_in_project", "joined_date"]
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    created_by_name = serializers.SerializerMethodField()
    participant_count = serializers.SerializerMethodField()
    is_participant = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            "id",
            "title",
            "description",
            "status",
            "priority",
            "start_date",
            "end_date",
            "created_by",
            "created_by_name",
            "participant_count",
            "is_participant",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        return obj.created_by.full_name if obj.created_by else None

    def get_participant_count(self, obj):
        annotated = getattr(obj, "_participant_count", None)
        if annotated is not None:
            return annotated
        return obj.participants.count()

    def get_is_participant(self, obj):
        request = self.context.get("request")
        if not request or not request.user.is_authenticated:
            return False
        return obj.participants.filter(user=request.user).exists()
