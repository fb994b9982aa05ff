"""Tests for validation utilities."""
import pytest

from humorai.exceptions import ValidationError
from humorai.utils.validation import (
    normalize_content_type,
    validate_content_type,
    validate_id,
    validate_non_empty,
    validate_vote_direction,
)


class TestValidateContentType:
    """Tests for validate_content_type function."""

    @pytest.mark.parametrize('content_type', [
        'image/jpeg', 'image/jpg', 'image/png', 'image/webp', 'image/gif', 'image/heic',
    ])
    def test_accepted_types(self, content_type):
        """Accepted image types should not raise."""
        validate_content_type(content_type)

    @pytest.mark.parametrize('content_type', ['image/bmp', 'image/svg+xml', 'video/mp4', 'IMAGE/PNG', ''])
    def test_rejected_types(self, content_type):
        """Anything else should raise with the accepted list in the message."""
        with pytest.raises(ValidationError, match="Use JPEG, PNG, WebP, GIF, or HEIC"):
            validate_content_type(content_type)

    def test_message_names_the_type(self):
        with pytest.raises(ValidationError, match="Unsupported file type: application/pdf"):
            validate_content_type('application/pdf')


class TestNormalizeContentType:
    """Tests for normalize_content_type function."""

    def test_jpg_alias(self):
        """image/jpg should become image/jpeg."""
        assert normalize_content_type('image/jpg') == 'image/jpeg'

    @pytest.mark.parametrize('content_type', ['image/jpeg', 'image/png', 'image/heic'])
    def test_other_types_unchanged(self, content_type):
        assert normalize_content_type(content_type) == content_type


class TestValidateVoteDirection:
    """Tests for validate_vote_direction function."""

    @pytest.mark.parametrize('direction', [1, -1])
    def test_valid(self, direction):
        validate_vote_direction(direction)

    @pytest.mark.parametrize('direction', [0, 2, -2, None])
    def test_invalid(self, direction):
        with pytest.raises(ValidationError, match="Vote direction must be 1 or -1"):
            validate_vote_direction(direction)


class TestValidateNonEmpty:
    """Tests for validate_non_empty function."""

    def test_valid_string(self):
        """Non-empty string should not raise."""
        validate_non_empty("hello", "field")
        validate_non_empty("  hello  ", "field")

    def test_empty_string(self):
        """Empty string should raise ValidationError."""
        with pytest.raises(ValidationError, match="field cannot be empty"):
            validate_non_empty("", "field")

    def test_whitespace_only(self):
        """Whitespace-only string should raise ValidationError."""
        with pytest.raises(ValidationError, match="name cannot be empty"):
            validate_non_empty("   ", "name")


class TestValidateId:
    """Tests for validate_id function."""

    def test_valid_id(self):
        validate_id("caption-1")

    def test_empty_id(self):
        with pytest.raises(ValidationError, match="ID cannot be empty"):
            validate_id("")

    def test_custom_field_name(self):
        with pytest.raises(ValidationError, match="image_id cannot be empty"):
            validate_id("", "image_id")
