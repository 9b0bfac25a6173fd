"""
Tests for object ids and request field guards
"""

import pytest

from app.core.errors import InvalidIdentifierError, ValidationError
from app.core.identifiers import (
    ensure_object_id,
    is_object_id,
    new_object_id,
    require_text,
)


class TestObjectIds:
    """Tests for generating and validating 24-hex ids."""

    def test_new_ids_are_valid_and_unique(self):
        ids = [new_object_id() for _ in range(500)]

        assert all(is_object_id(i) for i in ids)
        assert len(set(ids)) == len(ids)

    def test_rejects_wrong_length_and_non_hex(self):
        assert not is_object_id("")
        assert not is_object_id(None)
        assert not is_object_id("abc")
        assert not is_object_id("zz" * 12)
        assert not is_object_id("a" * 25)

    def test_ensure_normalizes_case_and_whitespace(self):
        assert ensure_object_id("  64B7F0C2A1B2C3D4E5F60718 ") == "64b7f0c2a1b2c3d4e5f60718"

    def test_ensure_raises_typed_error(self):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            ensure_object_id("not-an-id")

        assert exc_info.value.error_code == "INVALID_IDENTIFIER"
        assert exc_info.value.status_code == 400
        assert exc_info.value.context["field"] == "product_id"


class TestRequireText:
    """Tests for non-empty opaque ids."""

    def test_strips_value(self):
        assert require_text("  s-1 ", "student_id") == "s-1"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_empty_is_validation_error(self, value):
        with pytest.raises(ValidationError) as exc_info:
            require_text(value, "student_id")

        assert str(exc_info.value) == "student_id cannot be empty"
        assert exc_info.value.field == "student_id"
