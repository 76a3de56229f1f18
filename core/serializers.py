from rest_framework import serializers

from .sanitizers import sanitize_text, sanitize_title


# -----------------------------------------
# Shared form fields (program-wide rules)
# -----------------------------------------
def title_field(label: str, **kwargs):
    """Required, 3–200 characters."""
    return serializers.CharField(
        min_length=3,
        max_length=200,
        error_messages={
            "required": f"{label} title is required.",
            "blank": f"{label} title is required.",
            "null": f"{label} title is required.",
            "min_length": f"{label} title must be at least 3 characters long.",
            "max_length": f"{label} title must be less than 200 characters.",
        },
        **kwargs,
    )


def description_field(label: str, **kwargs):
    """Required, at least 10 characters."""
    return serializers.CharField(
        min_length=10,
        error_messages={
            "required": f"{label} description is required.",
            "blank": f"{label} description is required.",
            "null": f"{label} description is required.",
            "min_length": f"{label} description must be at least 10 characters long.",
        },
        **kwargs,
    )


def choice_field(choices, message: str, **kwargs):
    return serializers.ChoiceField(
        choices=choices,
        error_messages={
            "invalid_choice": message,
            "required": message,
            "blank": message,
            "null": message,
        },
        **kwargs,
    )


class _BlankAsNullMixin:
    """Forms submit an empty string for an unset date; store it as null."""

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("allow_null", True)
        super().__init__(**kwargs)

    def validate_empty_values(self, data):
        if isinstance(data, str) and not data.strip():
            data = None
        return super().validate_empty_values(data)


class OptionalDateField(_BlankAsNullMixin, serializers.DateField):
    pass


class OptionalDateTimeField(_BlankAsNullMixin, serializers.DateTimeField):
    pass


class CleanTextMixin:
    """
    Strip control characters from every CharField value; ``title``
    additionally collapses to a single line.
    """
    single_line_fields = ("title",)

    def to_internal_value(self, data):
        values = super().to_internal_value(data)
        for name, value in list(values.items()):
            if isinstance(value, str):
                values[name] = sanitize_title(value) if name in self.single_line_fields else sanitize_text(value)
        return values


class DateRangeMixin:
    """If both dates are present, the end must be strictly after the start."""
    start_field = "start_date"
    end_field = "end_date"
    date_range_message = "End date must be after start date."

    def validate(self, attrs):
        attrs = super().validate(attrs)
        instance = getattr(self, "instance", None)
        start = attrs.get(self.start_field, getattr(instance, self.start_field, None))
        end = attrs.get(self.end_field, getattr(instance, self.end_field, None))
        if start and end and end <= start:
            raise serializers.ValidationError({self.end_field: self.date_range_message})
        return attrs
