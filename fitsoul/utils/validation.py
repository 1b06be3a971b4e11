"""Client-side input validation for the auth screens.

Every function here is pure: the same input always produces the same
ValidationResult and nothing else is touched.
"""

import re
from enum import Enum
from pydantic import BaseModel, model_validator

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+?[1-9][0-9]{1,14}$")
CODE_PATTERN = re.compile(r"^[0-9]{6}$")
SPECIAL_CHARACTERS = set("!@#$%^&*()_+-=[]{};':\"\\|,.<>/?")


class ValidationResult(BaseModel):
    """Outcome of a single field check."""
    is_valid: bool
    error_message: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _message_only_when_invalid(self) -> "ValidationResult":
        if self.is_valid and self.error_message is not None:
            raise ValueError("A valid result cannot carry an error message")
        if not self.is_valid and not self.error_message:
            raise ValueError("An invalid result needs an error message")
        return self

    @classmethod
    def valid(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, error_message: str) -> "ValidationResult":
        return cls(is_valid=False, error_message=error_message)


class PasswordStrength(str, Enum):
    """Coarse password strength shown under the password field."""
    NONE = "none"
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


def validate_email(email: str | None) -> ValidationResult:
    if email is None or not email.strip():
        return ValidationResult.invalid("Email is required")
    if not EMAIL_PATTERN.match(email.strip()):
        return ValidationResult.invalid("Please enter a valid email address")
    return ValidationResult.valid()


def validate_password(password: str | None) -> ValidationResult:
    if not password:
        return ValidationResult.invalid("Password is required")
    if len(password) < 6:
        return ValidationResult.invalid("Password must be at least 6 characters")
    return ValidationResult.valid()


def validate_password_confirmation(
    password: str | None,
    confirm_password: str | None,
) -> ValidationResult:
    if not confirm_password:
        return ValidationResult.invalid("Please confirm your password")
    if password != confirm_password:
        return ValidationResult.invalid("Passwords do not match")
    return ValidationResult.valid()


def validate_full_name(full_name: str | None) -> ValidationResult:
    if full_name is None or not full_name.strip():
        return ValidationResult.invalid("Full name is required")
    if len(full_name.strip()) < 2:
        return ValidationResult.invalid("Full name must be at least 2 characters")
    return ValidationResult.valid()


def validate_phone_number(phone_number: str | None) -> ValidationResult:
    """Validate an E.164-shaped phone number, ignoring spaces and dashes."""
    if phone_number is None or not phone_number.strip():
        return ValidationResult.invalid("Phone number is required")

    clean_phone = re.sub(r"\s+", "", phone_number).replace("-", "")
    if not PHONE_PATTERN.match(clean_phone):
        return ValidationResult.invalid("Please enter a valid phone number")
    return ValidationResult.valid()


def validate_verification_code(code: str | None) -> ValidationResult:
    if code is None or not code.strip():
        return ValidationResult.invalid("Verification code is required")

    code = code.strip()
    if len(code) != 6:
        return ValidationResult.invalid("Verification code must be 6 digits")
    if not CODE_PATTERN.match(code):
        return ValidationResult.invalid("Verification code must contain only numbers")
    return ValidationResult.valid()


def get_password_strength(password: str | None) -> PasswordStrength:
    """Score a password on length and character variety.

    One point each for: length >= 8, length >= 12, a lowercase letter, an
    uppercase letter, a digit, a special character. 0-2 is weak, 3-4 medium,
    5-6 strong.
    """
    if not password:
        return PasswordStrength.NONE

    checks = [
        len(password) >= 8,
        len(password) >= 12,
        any("a" <= c <= "z" for c in password),
        any("A" <= c <= "Z" for c in password),
        any("0" <= c <= "9" for c in password),
        any(c in SPECIAL_CHARACTERS for c in password),
    ]
    score = sum(checks)

    if score <= 2:
        return PasswordStrength.WEAK
    if score <= 4:
        return PasswordStrength.MEDIUM
    return PasswordStrength.STRONG
