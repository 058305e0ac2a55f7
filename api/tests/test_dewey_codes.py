"""Tests for the Dewey code grammar."""
import pytest

from recipebook.core.dewey_codes import (
    get_level,
    get_parent_code,
    is_sequence_code,
    is_valid_code,
    make_sequence_code,
    split_sequence,
    structural_ancestors,
    validate_category_code,
    validate_code,
)
from recipebook.core.exceptions import ClassificationError, InvalidCodeFormat


class TestValidateCode:
    """Test code format validation."""

    @pytest.mark.parametrize("code", ["0", "00", "000", "000.0", "000.00", "411.21", "411.21.003"])
    def test_valid_codes(self, code):
        assert validate_code(code) == code

    def test_strips_whitespace(self):
        assert validate_code("  000.0 ") == "000.0"

    @pytest.mark.parametrize("code", ["", "   ", None, "abc", "4a1", "1..2", ".5", "5.", "411.21.01", "1.2.3.4"])
    def test_invalid_codes(self, code):
        with pytest.raises(InvalidCodeFormat):
            validate_code(code)
        assert not is_valid_code(code)

    def test_invalid_code_is_a_value_error(self):
        """Callers that only know about ValueError still catch it."""
        with pytest.raises(ValueError):
            validate_code("x")
        assert issubclass(InvalidCodeFormat, ClassificationError)

    def test_error_message_names_code(self):
        with pytest.raises(InvalidCodeFormat) as exc_info:
            validate_code("4a1")
        assert "4a1" in str(exc_info.value)

    def test_category_code_refuses_sequence_form(self):
        assert validate_category_code(" 411.21 ") == "411.21"
        with pytest.raises(InvalidCodeFormat):
            validate_category_code("411.21.001")


class TestGetLevel:
    """Test hierarchy depth derived from the code."""

    @pytest.mark.parametrize("code,expected", [
        ("0", 1),
        ("00", 2),
        ("000", 3),
        ("000.0", 4),
        ("000.00", 5),
        ("411.21", 5),
        ("4", 1),
    ])
    def test_level(self, code, expected):
        assert get_level(code) == expected

    def test_sequence_suffix_does_not_add_a_level(self):
        assert get_level("411.21.001") == get_level("411.21") == 5

    def test_invalid_code_raises(self):
        with pytest.raises(InvalidCodeFormat):
            get_level("4-1")


class TestGetParentCode:
    """Test structural parent derivation."""

    def test_single_digit_is_root(self):
        assert get_parent_code("0") is None
        assert get_parent_code("7") is None

    @pytest.mark.parametrize("code,expected", [
        ("00", "0"),
        ("000", "00"),
        ("000.0", "000"),
        ("000.00", "000.0"),
        ("411.21", "411.2"),
        ("10", "1"),
    ])
    def test_parent(self, code, expected):
        assert get_parent_code(code) == expected

    def test_parent_of_sequence_code_is_its_base(self):
        assert get_parent_code("411.21.003") == "411.21"

    @pytest.mark.parametrize("code", ["00", "000", "000.0", "000.00", "411.21", "123.456"])
    def test_parent_is_one_level_up(self, code):
        parent = get_parent_code(code)
        assert get_level(parent) == get_level(code) - 1

    def test_sequence_code_shares_its_parents_level(self):
        """A sequence suffix names a recipe, so the parent sits at the same level."""
        parent = get_parent_code("411.21.001")
        assert parent == "411.21"
        assert get_level(parent) == get_level("411.21.001") == 5

    def test_structural_ancestors_root_first(self):
        assert structural_ancestors("000.00") == ["0", "00", "000", "000.0", "000.00"]
        assert structural_ancestors("4") == ["4"]


class TestSequenceCodes:
    """Test splitting and building sequence-suffixed codes."""

    def test_make_sequence_code_pads(self):
        assert make_sequence_code("411.21", 3) == "411.21.003"
        assert make_sequence_code("000", 12) == "000.012"

    def test_split_two_dot_code(self):
        assert split_sequence("411.21.001") == ("411.21", "001")

    def test_split_plain_category_code(self):
        assert split_sequence("000.0") == ("000.0", None)
        assert split_sequence("411") == ("411", None)

    def test_one_dot_suffix_without_index(self):
        """Without a category index, a three-digit fraction reads as a suffix."""
        assert split_sequence("000.001") == ("000", "001")

    def test_one_dot_suffix_with_known_base(self):
        assert split_sequence("000.001", known_codes={"000"}) == ("000", "001")

    def test_known_category_is_not_split(self):
        """A level-6 category with the same shape as a sequence code wins."""
        assert split_sequence("000.001", known_codes={"000", "000.001"}) == ("000.001", None)

    def test_unknown_base_is_not_split(self):
        assert split_sequence("000.001", known_codes={"411"}) == ("000.001", None)

    def test_is_sequence_code(self):
        assert is_sequence_code("411.21.007")
        assert not is_sequence_code("411.21")
        assert not is_sequence_code("000.001", known_codes={"000.001"})
