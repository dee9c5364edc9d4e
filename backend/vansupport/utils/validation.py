from __future__ import annotations
"""Field validators shared by the ticket, owner and van endpoints.

Every validator takes the raw submitted value and returns a ValidationResult;
none of them has side effects. Routes gather results per field and call
collect_errors() so a failing form yields one 400 listing every bad field.
"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Dict
from flask import abort
from werkzeug.exceptions import BadRequest

from vansupport.constants.ticketing import VAN_MAKES

PHONE_CHARS_RE = re.compile(r'^[\d\s\-+()]+$')
EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

SUBJECT_MIN, SUBJECT_MAX = 5, 200
DESCRIPTION_MIN, DESCRIPTION_MAX = 20, 2000
MIN_VAN_YEAR = 2000


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    formatted: Optional[str] = None


OK = ValidationResult(True)


def _fail(message: str) -> ValidationResult:
    return ValidationResult(False, error=message)


class FieldValidationError(BadRequest):
    """400 carrying per-field messages; the app error handler exposes them as `fields`."""

    def __init__(self, fields: Dict[str, str]):
        super().__init__(description='Validation failed')
        self.fields = fields


def validate_name(value) -> ValidationResult:
    if not value or not str(value).strip():
        return _fail('Name is required')
    if len(str(value).strip()) < 2:
        return _fail('Name must be at least 2 characters')
    return OK


def _digits(value: str) -> str:
    return re.sub(r'\D', '', value)


def format_phone(value: str) -> str:
    """Canonical +1 (XXX) XXX-XXXX form; input returned unchanged when it has none."""
    digits = _digits(value)
    if len(digits) == 11 and digits[0] == '1':
        digits = digits[1:]
    if len(digits) == 10:
        return f'+1 ({digits[0:3]}) {digits[3:6]}-{digits[6:10]}'
    return value


def validate_phone(value, strict: bool = False) -> ValidationResult:
    if not value or not str(value).strip():
        return _fail('Phone number is required')
    value = str(value).strip()
    if not PHONE_CHARS_RE.match(value):
        return _fail('Invalid phone number format')
    digits = _digits(value)
    canonical = len(digits) == 10 or (len(digits) == 11 and digits[0] == '1')
    if canonical:
        return ValidationResult(True, formatted=format_phone(value))
    if strict:
        return _fail('Phone number must be 10 digits')
    return OK


def validate_email(value, required: bool = False) -> ValidationResult:
    if not value or not str(value).strip():
        return _fail('Email is required') if required else OK
    if EMAIL_RE.match(str(value).strip()):
        return OK
    return _fail('Invalid email format')


def _length_check(value, label: str, minimum: int, maximum: int) -> ValidationResult:
    text = str(value or '').strip()
    if not text:
        return _fail(f'{label} is required')
    if len(text) < minimum:
        return _fail(f'{label} must be at least {minimum} characters')
    if len(text) > maximum:
        return _fail(f'{label} must be at most {maximum} characters')
    return OK


def validate_subject(value) -> ValidationResult:
    return _length_check(value, 'Subject', SUBJECT_MIN, SUBJECT_MAX)


def validate_description(value) -> ValidationResult:
    return _length_check(value, 'Description', DESCRIPTION_MIN, DESCRIPTION_MAX)


def validate_van_number(value) -> ValidationResult:
    if not value or not str(value).strip():
        return _fail('Van number is required')
    return ValidationResult(True, formatted=str(value).strip().upper())


def validate_make(value) -> ValidationResult:
    if not value:
        return _fail('Make is required')
    if value not in VAN_MAKES:
        return _fail('Make must be ' + ', '.join(VAN_MAKES[:-1]) + f', or {VAN_MAKES[-1]}')
    return OK


def validate_year(value, today: Optional[date] = None) -> ValidationResult:
    if value is None or value == '':
        return _fail('Year is required')
    try:
        year = int(value)
    except (TypeError, ValueError):
        return _fail('Year must be a number')
    latest = (today or date.today()).year + 1
    if year < MIN_VAN_YEAR:
        return _fail(f'Year must be {MIN_VAN_YEAR} or later')
    if year > latest:
        return _fail(f'Year cannot be later than {latest}')
    return OK


def validate_vin(value) -> ValidationResult:
    if not value or not str(value).strip():
        return OK  # optional
    vin = str(value).strip().upper()
    if len(vin) != 17:
        return _fail('VIN must be exactly 17 characters')
    if re.search(r'[IOQ]', vin):
        return _fail('VIN cannot contain letters I, O, or Q')
    return ValidationResult(True, formatted=vin)


def collect_errors(results: Mapping[str, ValidationResult]) -> None:
    """Raise FieldValidationError listing every invalid field."""
    errors = {field: r.error for field, r in results.items() if not r.valid}
    if errors:
        raise FieldValidationError(errors)


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or aborts with 400.
    """
    allowed = tuple(allowed)
    if new_status not in allowed:
        abort(400, description=f"Invalid {field_name}. Must be one of: {', '.join(allowed)}")
    return new_status

__all__ = [
    'ValidationResult', 'FieldValidationError', 'validate_name', 'validate_phone', 'format_phone',
    'validate_email', 'validate_subject', 'validate_description', 'validate_van_number',
    'validate_make', 'validate_year', 'validate_vin', 'collect_errors', 'validate_status',
]
