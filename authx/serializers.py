import re

from django.contrib.auth import get_user_model
from rest_framework import serializers

from core.sanitizers import sanitize_text
from users.roles import ROLE_MENTOR, ROLE_PARTICIPANT, ROLE_VOLUNTEER, ROLE_CHOICES
from users.serializers import min_password_length

User = get_user_model()

# Self-registration never grants admin
SELF_REGISTER_ROLES = [(value, label) for value, label in ROLE_CHOICES if value in (
    ROLE_PARTICIPANT, ROLE_MENTOR, ROLE_VOLUNTEER,
)]


def password_strength_errors(password: str) -> list:
    errors = []
    if len(password) < min_password_length():
        errors.append(f"Password must be at least {min_password_length()} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not re.search(r"[^a-zA-Z0-9]", password):
        errors.append("Password must contain at least one special character")
    return errors


def _required(label):
    return {"required": f"{label} is required.", "blank": f"{label} is required."}


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(
        min_length=3,
        max_length=150,
        error_messages={**_required("Username"), "min_length": "Username must be at least 3 characters long."},
    )
    email = serializers.EmailField(error_messages={**_required("Email"), "invalid": "Invalid email format"})
    first_name = serializers.CharField(max_length=150, error_messages=_required("First name"))
    last_name = serializers.CharField(max_length=150, error_messages=_required("Last name"))
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    role = serializers.ChoiceField(
        choices=SELF_REGISTER_ROLES,
        required=False,
        default=ROLE_PARTICIPANT,
        error_messages={"invalid_choice": "Invalid user role"},
    )
    password = serializers.CharField(trim_whitespace=False, error_messages=_required("Password"))
    confirm_password = serializers.CharField(trim_whitespace=False, error_messages=_required("Password confirmation"))
    terms = serializers.BooleanField(required=False, default=False)

    def validate_username(self, value):
        value = sanitize_text(value)
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("Username already exists")
        return value

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already registered")
        return value.lower()

    def validate_password(self, value):
        errors = password_strength_errors(value)
        if errors:
            raise serializers.ValidationError(". ".join(errors))
        return value

    def validate(self, attrs):
        if attrs["password"] != attrs["confirm_password"]:
            raise serializers.ValidationError({"confirm_password": "Passwords do not match."})
        if not attrs.pop("terms", False):
            raise serializers.ValidationError({"terms": "Please accept the terms and conditions."})
        attrs.pop("confirm_password")
        return attrs

    def create(self, validated_data):
        return User.objects.create_user(
            username=validated_data["username"],
            email=validated_data["email"],
            password=validated_data["password"],
            first_name=sanitize_text(validated_data["first_name"]),
            last_name=sanitize_text(validated_data["last_name"]),
            phone=sanitize_text(validated_data.get("phone", "")),
            role=validated_data.get("role", ROLE_PARTICIPANT),
        )


class LoginSerializer(serializers.Serializer):
    """
    Username (or email) + password. Inactive accounts are reported as
    such; every other failure gets the same generic message.
    """
    username = serializers.CharField(error_messages=_required("Username"))
    password = serializers.CharField(trim_whitespace=False, error_messages=_required("Password"))

    default_error = "Invalid username or password"

    def validate(self, attrs):
        login = sanitize_text(attrs["username"])
        user = (
            User.objects.filter(username__iexact=login).first()
            or User.objects.filter(email__iexact=login).first()
        )

        if user is None:
            raise serializers.ValidationError(self.default_error)
        if not user.is_active:
            raise serializers.ValidationError("Account is inactive. Contact administrator.")
        if not user.check_password(attrs["password"]):
            raise serializers.ValidationError(self.default_error)

        attrs["user"] = user
        return attrs
