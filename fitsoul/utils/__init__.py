"""Utility functions for Fitsoul."""

from fitsoul.utils.observable import Observable
from fitsoul.utils.validation import (
    EMAIL_PATTERN,
    PasswordStrength,
    ValidationResult,
    get_password_strength,
    validate_email,
    validate_full_name,
    validate_password,
    validate_password_confirmation,
    validate_phone_number,
    validate_verification_code,
)

__all__ = [
    "Observable",
    "EMAIL_PATTERN",
    "PasswordStrength",
    "ValidationResult",
    "get_password_strength",
    "validate_email",
    "validate_full_name",
    "validate_password",
    "validate_password_confirmation",
    "validate_phone_number",
    "validate_verification_code",
]
