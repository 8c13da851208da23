"""
Unit tests for bounded sampling parameters.

Tests cover the accepted ranges of TopK, TopP, MaxTokens, NonEmptyString
and Stop, parsing from raw text, and the error details attached to
violations.
"""

import math

import pytest

from synthtext.schemas.engine import CustomEngineDefinition, EnginePreset
from synthtext.schemas.parameters import MaxTokens, NonEmptyString, Stop, TopK, TopP
from synthtext.utils.exceptions import ValidationError


# ============================================================================
# TopK Tests
# ============================================================================

class TestTopK:
    """Test TopK bounds (0..=1000)."""

    @pytest.mark.parametrize("value", [0, 1, 40, 999, 1000])
    def test_accepts_values_in_range(self, value: int) -> None:
        assert TopK.new(value).value == value

    @pytest.mark.parametrize("value", [-1, 1001, 65535])
    def test_rejects_values_out_of_range(self, value: int) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TopK.new(value)

        assert exc_info.value.field == "top_k"
        assert str(value) in exc_info.value.message

    def test_rejects_bool(self) -> None:
        """Booleans are not accepted as counts."""
        with pytest.raises(ValidationError):
            TopK.new(True)  # type: ignore[arg-type]

    def test_parse_from_text(self) -> None:
        assert TopK.parse("250").value == 250

    def test_parse_rejects_non_numbers(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TopK.parse("many")

        assert "'many'" in exc_info.value.message

    def test_is_immutable(self) -> None:
        top_k = TopK.new(5)
        with pytest.raises(Exception):
            top_k.value = 6  # type: ignore[misc]


# ============================================================================
# TopP Tests
# ============================================================================

class TestTopP:
    """Test TopP bounds (0.0..=1.0)."""

    @pytest.mark.parametrize("value", [0.0, 0.5, 0.95, 1.0])
    def test_accepts_values_in_range(self, value: float) -> None:
        assert TopP.new(value).value == value

    @pytest.mark.parametrize("value", [-0.01, 1.0000001, 1.5, math.inf])
    def test_rejects_values_out_of_range(self, value: float) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TopP.new(value)

        assert exc_info.value.field == "top_p"

    def test_rejects_nan(self) -> None:
        with pytest.raises(ValidationError):
            TopP.new(math.nan)

    def test_parse_from_text(self) -> None:
        assert TopP.parse("0.25").value == 0.25

    def test_parse_rejects_non_floats(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TopP.parse("half")

        assert "wasn't a valid float" in exc_info.value.message

    def test_error_message_names_input(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TopP.new(1.5)

        assert "1.5" in exc_info.value.message
        assert exc_info.value.details["input"] == {"value": 1.5}


# ============================================================================
# MaxTokens Tests
# ============================================================================

class TestMaxTokens:
    """Test MaxTokens bounds, which depend on the engine."""

    def test_custom_engine_ceiling_is_inclusive(self) -> None:
        engine = CustomEngineDefinition(engine_id="custom", max_tokens=2048)

        assert MaxTokens.new(2048, engine).value == 2048
        with pytest.raises(ValidationError):
            MaxTokens.new(2049, engine)

    def test_zero_is_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            MaxTokens.new(0, EnginePreset.GPTJ_6B)

        assert exc_info.value.field == "max_tokens"

    def test_one_is_accepted(self) -> None:
        assert MaxTokens.new(1, EnginePreset.GPTJ_6B).value == 1

    def test_same_value_depends_on_engine(self) -> None:
        """1500 fits a 2048-token engine but not a 1024-token one."""
        assert MaxTokens.new(1500, EnginePreset.GPTJ_6B).value == 1500

        with pytest.raises(ValidationError) as exc_info:
            MaxTokens.new(1500, EnginePreset.FAIRSEQ_GPT_13B)

        assert "fairseq_gpt_13B" in exc_info.value.message
        assert "1..=1024" in exc_info.value.message

    def test_records_engine_ceiling(self) -> None:
        max_tokens = MaxTokens.new(10, EnginePreset.BORIS_6B)
        assert max_tokens.engine_max_tokens == 2048

    def test_parse_from_text(self) -> None:
        assert MaxTokens.parse("64", EnginePreset.GPTJ_6B).value == 64

    def test_parse_rejects_non_numbers(self) -> None:
        with pytest.raises(ValidationError):
            MaxTokens.parse("lots", EnginePreset.GPTJ_6B)


# ============================================================================
# NonEmptyString Tests
# ============================================================================

class TestNonEmptyString:
    """Test NonEmptyString."""

    def test_accepts_text(self) -> None:
        assert NonEmptyString.new("yes").value == "yes"

    def test_accepts_whitespace(self) -> None:
        """Only the empty string is rejected."""
        assert NonEmptyString.new(" ").value == " "

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            NonEmptyString.new("", field="continuation")

        assert exc_info.value.field == "continuation"
        assert "empty" in exc_info.value.message

    def test_str_returns_value(self) -> None:
        assert str(NonEmptyString.parse("hello")) == "hello"


# ============================================================================
# Stop Tests
# ============================================================================

class TestStop:
    """Test the stop sequence cap."""

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_accepts_up_to_five(self, count: int) -> None:
        stop = Stop.new([f"s{i}" for i in range(count)])
        assert len(stop.sequences) == count

    @pytest.mark.parametrize("count", [6, 10])
    def test_rejects_more_than_five(self, count: int) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Stop.new(["x"] * count)

        assert exc_info.value.field == "stop"
        assert f"got {count}" in exc_info.value.message

    def test_content_is_unconstrained(self) -> None:
        """Empty and duplicate strings are allowed."""
        stop = Stop.new(["", "\n", "\n"])
        assert stop.as_list() == ["", "\n", "\n"]

    @pytest.mark.parametrize("value", ["hello", "\n", b"end"])
    def test_rejects_single_string(self, value) -> None:
        """A bare string is not split into one sequence per character."""
        with pytest.raises(ValidationError) as exc_info:
            Stop.new(value)

        assert exc_info.value.field == "stop"
        assert "single string" in exc_info.value.message

    def test_preserves_order(self) -> None:
        assert Stop.new(("b", "a")).as_list() == ["b", "a"]
