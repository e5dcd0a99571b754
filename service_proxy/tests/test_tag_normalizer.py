"""
Unit tests for tag normalization and validation.
"""

import pytest

from service_proxy.app.tags import normalize_tag, validate_tag
from shared.errors import InvalidIdentifierError


class TestNormalizeTag:
    """Test cases for normalize_tag."""

    @pytest.mark.parametrize("raw", ["abc123", "#ABC123", "%23ABC123", "  #abc123 ", "%23abc123"])
    def test_equivalent_forms_share_canonical_output(self, raw):
        assert normalize_tag(raw) == "%23ABC123"

    @pytest.mark.parametrize("raw", ["2pp", "#2PP", "%2523LQ9", "y0 v", "#", "A%B", "%23%23X"])
    def test_normalization_is_idempotent(self, raw):
        once = normalize_tag(raw)
        assert normalize_tag(once) == once

    def test_empty_input_returns_empty_string(self):
        assert normalize_tag("") == ""

    def test_marker_only_is_not_rejected(self):
        assert normalize_tag("#") == "%23"

    def test_output_is_safe_for_path_segment(self):
        encoded = normalize_tag("a/b c")
        assert "/" not in encoded
        assert " " not in encoded
        assert encoded == "%23A%2FB%20C"

    def test_decodes_only_once(self):
        # "%2523" decodes to the literal text "%23", which stays part of the tag
        assert normalize_tag("%2523ABC") == "%23%2523ABC"


class TestValidateTag:
    """Test cases for validate_tag."""

    @pytest.mark.parametrize("raw", [None, "", 123])
    def test_missing_tag(self, raw):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            validate_tag(raw)
        assert exc_info.value.reason == "tag_missing"
        assert exc_info.value.status_code == 400

    def test_blank_tag(self):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            validate_tag("   ")
        assert exc_info.value.reason == "tag_empty"

    def test_lenient_mode_accepts_any_characters(self):
        validate_tag("not-a-real-tag!")

    @pytest.mark.parametrize("raw", ["#2PP", "2pp", "%232PPLQ", " #p0lyj "])
    def test_strict_mode_accepts_upstream_alphabet(self, raw):
        validate_tag(raw, strict=True)

    @pytest.mark.parametrize("raw", ["#ABC123", "#", "%23", "#2PP!"])
    def test_strict_mode_rejects_foreign_characters(self, raw):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            validate_tag(raw, strict=True)
        assert exc_info.value.reason == "tag_invalid_characters"

    def test_validate_then_normalize(self):
        raw = " #2pp "
        validate_tag(raw, strict=True)
        assert normalize_tag(raw) == "%232PP"

    def test_error_response_shape(self):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            validate_tag("")
        content = exc_info.value.to_response("req-1").to_content()
        assert content["error"] == "invalid_tag"
        assert content["reason"] == "tag_missing"
        assert content["requestId"] == "req-1"
