"""Tests for image upload validation."""

import pytest

from db.storage import ImageTooLargeError, UnsupportedImageError, validate_image

LIMIT = 1024


class TestValidateImage:
    """Tests for validate_image."""

    @pytest.mark.parametrize("content_type", ["image/png", "image/jpeg", "image/webp"])
    def test_accepts_images(self, content_type):
        """Test image uploads within the limit pass."""
        assert validate_image("a", content_type, LIMIT, LIMIT) == content_type

    @pytest.mark.parametrize("content_type", [None, "", "application/pdf", "text/plain"])
    def test_rejects_other_types(self, content_type):
        """Test non-image uploads are rejected."""
        with pytest.raises(UnsupportedImageError, match="is not an image"):
            validate_image("doc", content_type, 10, LIMIT)

    def test_rejects_empty(self):
        """Test an empty payload is rejected."""
        with pytest.raises(UnsupportedImageError, match="empty"):
            validate_image("a.png", "image/png", 0, LIMIT)

    def test_rejects_too_large(self):
        """Test payloads over the limit are rejected."""
        with pytest.raises(ImageTooLargeError, match="a.png is 1025 bytes"):
            validate_image("a.png", "image/png", LIMIT + 1, LIMIT)
