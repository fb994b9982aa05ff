"""Shared validation utilities for the HumorAI client."""
from humorai.exceptions import ValidationError

JPEG_CONTENT_TYPE = 'image/jpeg'

# `image/jpg` is declared by some browsers and tools but rejected by the captioning service
CONTENT_TYPE_ALIASES = {
    'image/jpg': JPEG_CONTENT_TYPE,
}

ACCEPTED_CONTENT_TYPES = frozenset({
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/webp',
    'image/gif',
    'image/heic',
})

VOTE_DIRECTIONS = (1, -1)


def validate_content_type(content_type: str) -> None:
    """
    Validate that a declared media type can be sent through the upload pipeline.

    :param content_type: Declared media type of the file
    :raises ValidationError: If the type is not accepted
    """
    if content_type not in ACCEPTED_CONTENT_TYPES:
        raise ValidationError(
            f"Unsupported file type: {content_type}. Use JPEG, PNG, WebP, GIF, or HEIC."
        )


def normalize_content_type(content_type: str) -> str:
    """Map alias media types to the canonical string the captioning service recognizes."""
    return CONTENT_TYPE_ALIASES.get(content_type, content_type)


def validate_vote_direction(direction: int) -> None:
    """
    :raises ValidationError: If direction is neither 1 nor -1
    """
    if direction not in VOTE_DIRECTIONS:
        raise ValidationError(f"Vote direction must be 1 or -1, got {direction!r}")


def validate_non_empty(value: str, field_name: str) -> None:
    """
    Validate that a string value is non-empty.

    :param value: Value to validate
    :param field_name: Name of the field for error messages
    :raises ValidationError: If value is empty or whitespace-only
    """
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")


def validate_id(value: str, field_name: str = "ID") -> None:
    """
    Validate that an ID is non-empty.

    :param value: ID value to validate
    :param field_name: Name of the field for error messages (default "ID")
    :raises ValidationError: If ID is empty
    """
    validate_non_empty(value, field_name)
