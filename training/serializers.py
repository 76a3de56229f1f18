from django.contrib.auth import get_user_model
from rest_framework import serializers

from core.serializers import CleanTextMixin, choice_field, title_field
from users.roles import ROLE_ADMIN, ROLE_MENTOR
from .datetime_utils import format_for_display
from .models import SessionAttendance, TrainingSession

User = get_user_model()


class TrainingSessionWriteSerializer(CleanTextMixin, serializers.ModelSerializer):
    """Create / edit form for a training session."""
    title = title_field("Session")
    description = serializers.CharField(required=False, allow_blank=True)
    session_date = serializers.DateTimeField(
        error_messages={
            "required": "Session date and time are required.",
            "null": "Session date and time are required.",
            "invalid": "Invalid session date format.",
        }
    )
    duration_minutes = serializers.IntegerField(
        required=False,
        min_value=15,
        max_value=480,
        error_messages={
            "min_value": "Duration must be between 15 and 480 minutes.",
            "max_value": "Duration must be between 15 and 480 minutes.",
            "invalid": "Duration must be between 15 and 480 minutes.",
        },
    )
    location = serializers.CharField(required=False, allow_blank=True, max_length=255)
    instructor = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True, role__in=[ROLE_ADMIN, ROLE_MENTOR]),
        required=False,
        allow_null=True,
        error_messages={"does_not_exist": "Instructor must be an active administrator or mentor."},
    )
    max_participants = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=1,
        error_messages={"min_value": "Maximum participants must be at least 1."},
    )
    status = choice_field(TrainingSession.STATUS_CHOICES, "Invalid session status.", required=False)

    class Meta:
        model = TrainingSession
        fields = [
            "title",
            "description",
            "session_date",
            "duration_minutes",
            "location",
            "instructor",
            "max_participants",
            "status",
        ]

    def to_internal_value(self, data):
        # Empty selects / inputs on the form mean "not set"
        blanks = [key for key in ("instructor", "max_participants") if hasattr(data, "get") and data.get(key) == ""]
        if blanks:
            data = data.copy()
            for key in blanks:
                data[key] = None
        return super().to_internal_value(data)


class TrainingSessionSerializer(serializers.ModelSerializer):
    instructor_name = serializers.SerializerMethodField()
    session_date_display = serializers.SerializerMethodField()
    registered_count = serializers.SerializerMethodField()
    attended_count = serializers.SerializerMethodField()

    class Meta:
        model = TrainingSession
        fields = [
            "id",
            "title",
            "description",
            "session_date",
            "session_date_display",
            "duration_minutes",
            "location",
            "instructor",
            "instructor_name",
            "max_participants",
            "status",
            "registered_count",
            "attended_count",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields

    def get_instructor_name(self, obj):
        return obj.instructor.full_name if obj.instructor else None

    def get_session_date_display(self, obj):
        return format_for_display(obj.session_date)

    def get_registered_count(self, obj):
        annotated = getattr(obj, "_registered_count", None)
        if annotated is not None:
            return annotated
        return obj.attendance.filter(status__in=SessionAttendance.SEAT_STATUSES).count()

    def get_attended_count(self, obj):
        annotated = getattr(obj, "_attended_count", None)
        if annotated is not None:
            return annotated
        return obj.attendance.filter(status=SessionAttendance.STATUS_ATTENDED).count()


class AttendanceSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    full_name = serializers.CharField(source="user.full_name", read_only=True)
    email = serializers.CharField(source="user.email", read_only=True)
    user_role = serializers.CharField(source="user.role", read_only=True)

    class Meta:
        model = SessionAttendance
        fields = [
            "id",
            "session",
            "user",
            "username",
            "full_name",
            "email",
            "user_role",
            "status",
            "notes",
            "registration_date",
            "attendance_date",
        ]
        read_only_fields = fields


class AvailableUserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "full_name", "email", "role"]
        read_only_fields = fields
