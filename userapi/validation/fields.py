"""
Form field validators shared by the API schemas and the client.

Each validator returns a ValidationResult instead of raising, so the same
checks can drive inline form messages and server-side DTO validation.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Optional

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: Optional[str] = None


_OK = ValidationResult(True)


def validate_email(email: Optional[str]) -> ValidationResult:
    if not email:
        return ValidationResult(False, "Email is required")
    if not _EMAIL_RE.match(email):
        return ValidationResult(False, "Invalid email format")
    return _OK


def validate_required(value: Any, field_name: str) -> ValidationResult:
    if value is None or value == "" or (isinstance(value, (list, tuple)) and not value):
        return ValidationResult(False, f"{field_name} is required")
    return _OK


def validate_length(
    value: Optional[str],
    min_length: int,
    max_length: int,
    field_name: str,
) -> ValidationResult:
    required = validate_required(value, field_name)
    if not required.is_valid:
        return required
    if len(value) < min_length:
        return ValidationResult(False, f"{field_name} must be at least {min_length} characters long")
    if len(value) > max_length:
        return ValidationResult(False, f"{field_name} must be at most {max_length} characters long")
    return _OK
