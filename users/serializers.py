from django.conf import settings
from rest_framework import serializers

from core.sanitizers import sanitize_text
from .models import User
from .roles import ROLE_CHOICES


def min_password_length() -> int:
    return settings.PROGRAM_SETTINGS["MIN_PASSWORD_LENGTH"]


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    role_display = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "role_display",
            "is_active",
            "phone",
            "bio",
            "date_joined",
            "last_login",
        ]
        read_only_fields = fields


class PasswordConfirmMixin:
    """
    ``password`` / ``confirm_password`` pair. Required only when
    ``password_required`` is true; a blank password on edit means "keep".
    """
    password_required = False

    def validate(self, attrs):
        attrs = super().validate(attrs)
        password = attrs.pop("password", "") or ""
        confirm = attrs.pop("confirm_password", "") or ""

        if not password:
            if self.password_required:
                raise serializers.ValidationError({"password": "Password is required for new users."})
            return attrs

        if len(password) < min_password_length():
            raise serializers.ValidationError(
                {"password": f"Password must be at least {min_password_length()} characters long."}
            )
        if password != confirm:
            raise serializers.ValidationError({"confirm_password": "Passwords do not match."})

        attrs["password"] = password
        return attrs


class UserManageSerializer(PasswordConfirmMixin, serializers.ModelSerializer):
    """
    Admin create / edit form. The username is fixed once the account
    exists; on edit it is ignored.
    """
    username = serializers.CharField(
        min_length=3,
        max_length=150,
        error_messages={
            "required": "Username is required.",
            "blank": "Username is required.",
            "min_length": "Username must be at least 3 characters long.",
        },
    )
    email = serializers.EmailField(
        error_messages={
            "required": "Email is required.",
            "blank": "Email is required.",
            "invalid": "Please enter a valid email address.",
        }
    )
    first_name = serializers.CharField(
        max_length=150,
        error_messages={"required": "First name is required.", "blank": "First name is required."},
    )
    last_name = serializers.CharField(
        max_length=150,
        error_messages={"required": "Last name is required.", "blank": "Last name is required."},
    )
    role = serializers.ChoiceField(
        choices=ROLE_CHOICES,
        error_messages={
            "invalid_choice": "Please select a valid role.",
            "required": "Please select a valid role.",
            "blank": "Please select a valid role.",
        },
    )
    is_active = serializers.BooleanField(required=False)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    bio = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, trim_whitespace=False)
    confirm_password = serializers.CharField(write_only=True, required=False, allow_blank=True, trim_whitespace=False)

    class Meta:
        model = User
        fields = [
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "is_active",
            "phone",
            "bio",
            "password",
            "confirm_password",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.password_required = self.instance is None
        if self.instance is not None:
            self.fields["username"].required = False
            self.fields["username"].read_only = True

    def validate_username(self, value):
        value = sanitize_text(value)
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("Username already exists. Please choose a different one.")
        return value

    def validate_email(self, value):
        qs = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Email already exists. Please choose a different one.")
        return value.lower()

    def validate_first_name(self, value):
        return sanitize_text(value)

    def validate_last_name(self, value):
        return sanitize_text(value)

    def validate_bio(self, value):
        return sanitize_text(value)


class ProfileUpdateSerializer(PasswordConfirmMixin, serializers.ModelSerializer):
    """Self-service profile edit; changing the password needs the current one."""
    email = serializers.EmailField(
        required=False,
        error_messages={"invalid": "Please enter a valid email address.", "blank": "Email is required."},
    )
    first_name = serializers.CharField(
        required=False, max_length=150, error_messages={"blank": "First name is required."}
    )
    last_name = serializers.CharField(
        required=False, max_length=150, error_messages={"blank": "Last name is required."}
    )
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    bio = serializers.CharField(required=False, allow_blank=True)
    current_password = serializers.CharField(write_only=True, required=False, allow_blank=True, trim_whitespace=False)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, trim_whitespace=False)
    confirm_password = serializers.CharField(write_only=True, required=False, allow_blank=True, trim_whitespace=False)

    class Meta:
        model = User
        fields = ["first_name", "last_name", "email", "phone", "bio", "current_password", "password", "confirm_password"]

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("Email already exists. Please choose a different one.")
        return value.lower()

    def validate(self, attrs):
        current = attrs.pop("current_password", "") or ""
        attrs = super().validate(attrs)
        if attrs.get("password") and not self.instance.check_password(current):
            raise serializers.ValidationError({"current_password": "Current password is incorrect."})
        return attrs
