"""
Unit and property-based tests for ISBN-13 generation and validation.
"""

from unittest.mock import patch

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from catalog.exceptions import InvalidISBNLengthError
from catalog.isbn import (
    ISBNValidationResult, classify_isbn, compute_check_digit, generate_isbn, is_valid_isbn
)

VALID_ISBN = "9780306406157"

twelve_digits = st.text(alphabet="0123456789", min_size=12, max_size=12)


class TestGenerateISBN:
    """Test cases for generate_isbn."""

    def test_generated_isbns_are_valid(self):
        """Every generated ISBN has 13 digits, the 978 prefix and a valid check digit."""
        for _ in range(1000):
            isbn = generate_isbn()
            assert len(isbn) == 13
            assert isbn.isdigit()
            assert isbn.startswith("978")
            assert is_valid_isbn(isbn)
            assert classify_isbn(isbn).is_valid

    def test_payload_is_random(self):
        """Generated payloads vary between calls."""
        isbns = {generate_isbn() for _ in range(100)}
        assert len(isbns) > 90

    def test_uses_secure_random_digits(self):
        """Payload digits come from the secrets module."""
        with patch("catalog.isbn.secrets.choice", return_value="0") as mock_choice:
            isbn = generate_isbn()

        assert isbn == "9780000000002"
        assert mock_choice.call_count == 9


class TestComputeCheckDigit:
    """Test cases for compute_check_digit."""

    def test_known_check_digit(self):
        """Check digit of a well-known ISBN."""
        assert compute_check_digit("978030640615") == 7

    def test_remainder_zero_folds_to_zero(self):
        """A weighted sum divisible by 10 gives check digit 0, not 10."""
        # 9 + 7*3 + 8 + 2 = 40
        assert compute_check_digit("978000000020") == 0

    @pytest.mark.parametrize("value", ["", "97803064061", "9780306406157", "12345"])
    def test_wrong_length_raises(self, value):
        """Input that is not exactly 12 characters is a caller error."""
        with pytest.raises(InvalidISBNLengthError) as exc_info:
            compute_check_digit(value)

        assert exc_info.value.length == len(value)
        assert f"got: {len(value)}" in str(exc_info.value)

    def test_wrong_length_is_value_error(self):
        """InvalidISBNLengthError can be caught as ValueError."""
        with pytest.raises(ValueError):
            compute_check_digit("123")

    def test_non_digits_raise(self):
        """Twelve characters with a letter are rejected."""
        with pytest.raises(ValueError, match="only digits"):
            compute_check_digit("97803064061a")

    @given(twelve_digits)
    def test_check_digit_completes_valid_isbn(self, digits):
        """The computed digit is 0-9 and always yields a valid ISBN."""
        check = compute_check_digit(digits)
        assert 0 <= check <= 9
        assert is_valid_isbn(digits + str(check))

    @given(twelve_digits)
    def test_weighted_sum_is_multiple_of_ten(self, digits):
        """Including the check digit with weight 1, the weighted sum is divisible by 10."""
        full = digits + str(compute_check_digit(digits))
        total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(full))
        assert total % 10 == 0


class TestIsValidISBN:
    """Test cases for is_valid_isbn."""

    def test_valid_isbn(self):
        assert is_valid_isbn(VALID_ISBN) is True

    @pytest.mark.parametrize("value", [
        None,
        "",
        "978030640615",
        "97803064061570",
        "978030640615X",
        "978-030640615",
        "９７８０３０６４０６１５７",
        "9780306406158",
    ])
    def test_invalid_inputs_return_false(self, value):
        """Malformed input maps to False instead of raising."""
        assert is_valid_isbn(value) is False

    def test_every_single_digit_change_is_detected(self):
        """Changing any one position to any other digit invalidates the code."""
        for position in range(13):
            for digit in "0123456789":
                if VALID_ISBN[position] == digit:
                    continue
                mutated = VALID_ISBN[:position] + digit + VALID_ISBN[position + 1:]
                assert not is_valid_isbn(mutated), mutated

    @given(twelve_digits, st.integers(0, 12), st.integers(1, 9))
    def test_single_digit_errors_detected_for_any_code(self, digits, position, delta):
        """Single-digit substitutions are caught for arbitrary valid codes."""
        isbn = digits + str(compute_check_digit(digits))
        replacement = str((int(isbn[position]) + delta) % 10)
        mutated = isbn[:position] + replacement + isbn[position + 1:]
        assert not is_valid_isbn(mutated)


class TestClassifyISBN:
    """Test cases for classify_isbn and its check precedence."""

    def test_null(self):
        result = classify_isbn(None)
        assert result.is_valid is False
        assert result.message == "ISBN cannot be null"

    @pytest.mark.parametrize("value", ["", "   ", "\t\n", " " * 13])
    def test_blank_reported_before_length(self, value):
        """Blank input is reported as blank, never as the wrong length."""
        result = classify_isbn(value)
        assert result.is_valid is False
        assert result.message == "ISBN cannot be blank"

    def test_wrong_length(self):
        result = classify_isbn("978030640615")
        assert result.is_valid is False
        assert "must be exactly 13 digits" in result.message
        assert result.message == "ISBN must be exactly 13 digits, got 12"

    def test_length_reported_before_non_digits(self):
        """Short input with letters reports the length."""
        result = classify_isbn("abc")
        assert result.message == "ISBN must be exactly 13 digits, got 3"

    @pytest.mark.parametrize("value", ["978030640615X", "978 306406157", "979abcdefghij"])
    def test_non_digits_reported_before_prefix(self, value):
        result = classify_isbn(value)
        assert result.is_valid is False
        assert result.message == "ISBN must contain only digits"

    def test_wrong_prefix(self):
        result = classify_isbn("9790306406157")
        assert result.is_valid is False
        assert "must start with 978" in result.message

    def test_wrong_prefix_reported_before_check_digit(self):
        """A 979 code with a bad check digit still reports the prefix."""
        result = classify_isbn("9790306406150")
        assert result.message == "ISBN must start with 978"

    def test_invalid_check_digit(self):
        result = classify_isbn("9780306406158")
        assert result.is_valid is False
        assert result.message == "Invalid check digit"

    def test_valid(self):
        result = classify_isbn(VALID_ISBN)
        assert result.is_valid is True
        assert result.message == "Valid ISBN"

    @given(st.one_of(st.none(), st.text()))
    def test_never_raises_and_always_explains(self, value):
        """Any input gets exactly one non-blank reason."""
        result = classify_isbn(value)
        assert isinstance(result, ISBNValidationResult)
        assert result.message.strip()
        assert result.is_valid == (result.message == "Valid ISBN")


class TestISBNValidationResult:
    """Test cases for the validation result model."""

    @pytest.mark.parametrize("message", ["", "   "])
    def test_blank_message_rejected(self, message):
        with pytest.raises(ValidationError) as exc_info:
            ISBNValidationResult(is_valid=False, message=message)

        assert "Message cannot be null or blank" in str(exc_info.value)
