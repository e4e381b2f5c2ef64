"""
ISBN-13 generation and validation.

Generated codes use the fixed registration prefix 978, nine random payload
digits and the standard EAN-13 check digit (weights 1 and 3 alternating from
the left). Validation never raises on malformed input; ``classify_isbn``
reports the single most relevant reason.
"""

import secrets
import string
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from catalog.exceptions import InvalidISBNLengthError

ISBN_PREFIX = "978"
ISBN_LENGTH = 13
CHECK_DIGIT_POSITION = 12
PAYLOAD_LENGTH = CHECK_DIGIT_POSITION - len(ISBN_PREFIX)


class ISBNValidationResult(BaseModel):
    """Outcome of classifying an ISBN string."""
    is_valid: bool = Field(..., description="Whether the ISBN is valid")
    message: str = Field(..., description="Human-readable validation reason")

    @field_validator('message')
    @classmethod
    def validate_message(cls, v):
        """Ensure a reason is always present."""
        if not v or not v.strip():
            raise ValueError('Message cannot be null or blank')
        return v


def _random_digits(count: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(count))


def _is_digits(value: str) -> bool:
    # str.isdigit() also accepts non-ASCII digits such as "٣"
    return all(ch in string.digits for ch in value)


def generate_isbn() -> str:
    """
    Generate a random ISBN-13 candidate.

    Returns:
        13 digit string starting with 978 and ending in a valid check digit.
        Uniqueness is not guaranteed; see ``catalog.issuance``.
    """
    isbn12 = ISBN_PREFIX + _random_digits(PAYLOAD_LENGTH)
    return isbn12 + str(compute_check_digit(isbn12))


def compute_check_digit(isbn12: str) -> int:
    """
    Compute the ISBN-13 check digit for the first 12 digits.

    Args:
        isbn12: Exactly 12 decimal digits

    Returns:
        Check digit in the range 0-9

    Raises:
        InvalidISBNLengthError: If the input is not 12 characters long
        ValueError: If the input contains non-digit characters
    """
    if isbn12 is None or len(isbn12) != CHECK_DIGIT_POSITION:
        raise InvalidISBNLengthError(len(isbn12) if isbn12 is not None else 0)
    if not _is_digits(isbn12):
        raise ValueError(f"ISBN must contain only digits, got: {isbn12!r}")

    total = sum(
        int(digit) * (1 if i % 2 == 0 else 3)
        for i, digit in enumerate(isbn12)
    )
    return (10 - total % 10) % 10


def is_valid_isbn(isbn: Optional[str]) -> bool:
    """Check whether ``isbn`` is a 13 digit string with a correct check digit."""
    if isbn is None or len(isbn) != ISBN_LENGTH or not _is_digits(isbn):
        return False
    provided = int(isbn[CHECK_DIGIT_POSITION])
    return provided == compute_check_digit(isbn[:CHECK_DIGIT_POSITION])


def classify_isbn(isbn: Optional[str]) -> ISBNValidationResult:
    """
    Classify an ISBN string, reporting the first failing check.

    Checks run in a fixed order: null, blank, length, digits, prefix,
    check digit. A blank string is always reported as blank, never as
    having the wrong length.
    """
    if isbn is None:
        return ISBNValidationResult(is_valid=False, message="ISBN cannot be null")
    if not isbn.strip():
        return ISBNValidationResult(is_valid=False, message="ISBN cannot be blank")
    if len(isbn) != ISBN_LENGTH:
        return ISBNValidationResult(
            is_valid=False,
            message=f"ISBN must be exactly {ISBN_LENGTH} digits, got {len(isbn)}"
        )
    if not _is_digits(isbn):
        return ISBNValidationResult(is_valid=False, message="ISBN must contain only digits")
    if not isbn.startswith(ISBN_PREFIX):
        return ISBNValidationResult(is_valid=False, message=f"ISBN must start with {ISBN_PREFIX}")
    if not is_valid_isbn(isbn):
        return ISBNValidationResult(is_valid=False, message="Invalid check digit")
    return ISBNValidationResult(is_valid=True, message="Valid ISBN")
