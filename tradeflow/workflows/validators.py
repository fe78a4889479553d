"""Composable step validators."""

from __future__ import annotations

import re
from numbers import Number
from typing import Any, Iterable, Optional

from ..contracts import Fields, ValidationResult, Validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def to_int(value: Any) -> Optional[int]:
    """Parse an optional whole-number input; blanks become ``None``."""
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Number):
        return int(value)
    return int(str(value).strip())


def require(field: str, message: str) -> Validator:
    def _validate(fields: Fields) -> ValidationResult:
        if is_blank(fields.get(field)):
            return ValidationResult.failure(field, message)
        return ValidationResult.success()

    return _validate


def min_length(field: str, length: int, message: str) -> Validator:
    """Fails when a present value is shorter than ``length``; blanks pass."""

    def _validate(fields: Fields) -> ValidationResult:
        value = fields.get(field)
        if is_blank(value):
            return ValidationResult.success()
        if len(str(value).strip()) < length:
            return ValidationResult.failure(field, message)
        return ValidationResult.success()

    return _validate


def one_of(field: str, options: Iterable[str], message: str) -> Validator:
    allowed = frozenset(options)

    def _validate(fields: Fields) -> ValidationResult:
        if fields.get(field) not in allowed:
            return ValidationResult.failure(field, message)
        return ValidationResult.success()

    return _validate


def email(field: str, message: str = "Please enter a valid email address") -> Validator:
    def _validate(fields: Fields) -> ValidationResult:
        value = fields.get(field)
        if is_blank(value):
            return ValidationResult.success()
        if not EMAIL_PATTERN.match(str(value).strip()):
            return ValidationResult.failure(field, message)
        return ValidationResult.success()

    return _validate


def coordinates(field: str, message: str) -> Validator:
    """Requires a ``{"lat": ..., "lon": ...}`` selection within range."""

    def _validate(fields: Fields) -> ValidationResult:
        value = fields.get(field)
        if not isinstance(value, dict):
            return ValidationResult.failure(field, message)
        lat, lon = value.get("lat"), value.get("lon")
        if isinstance(lat, bool) or isinstance(lon, bool):
            return ValidationResult.failure(field, message)
        if not isinstance(lat, Number) or not isinstance(lon, Number):
            return ValidationResult.failure(field, message)
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            return ValidationResult.failure(field, "Selected location is outside valid coordinates.")
        return ValidationResult.success()

    return _validate


def number_range(low_field: str, high_field: str, label: str) -> Validator:
    """Optional whole-number range where the low bound may not exceed the high."""

    def _validate(fields: Fields) -> ValidationResult:
        result = ValidationResult.success()
        parsed = {}
        for name in (low_field, high_field):
            try:
                parsed[name] = to_int(fields.get(name))
            except ValueError:
                result = result.merge(
                    ValidationResult.failure(name, f"{label} must be a whole number.")
                )
        if not result.ok:
            return result
        low, high = parsed[low_field], parsed[high_field]
        if (low is not None and low < 0) or (high is not None and high < 0):
            return ValidationResult.failure(low_field, f"{label} cannot be negative.")
        if low is not None and high is not None and low > high:
            return ValidationResult.failure(
                high_field, f"Maximum {label.lower()} must be at least the minimum."
            )
        return ValidationResult.success()

    return _validate


def combine(*validators: Validator) -> Validator:
    """Run every validator and merge their reasons."""

    def _validate(fields: Fields) -> ValidationResult:
        result = ValidationResult.success()
        for validator in validators:
            result = result.merge(validator(fields))
        return result

    return _validate


def optional(field: str, validator: Validator) -> Validator:
    """Apply ``validator`` only when ``field`` has a value."""

    def _validate(fields: Fields) -> ValidationResult:
        if is_blank(fields.get(field)):
            return ValidationResult.success()
        return validator(fields)

    return _validate
