"""
Input validation utilities.

Validators return (is_valid, message) tuples; callers decide which error
to raise with the message.
"""

import re

MIN_YEAR = 2000
MAX_YEAR = 2100
INT_PATTERN = re.compile(r'-?[0-9]+')


def _is_int(value):
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, str):
        # ASCII digits only; int() rejects '--5' and superscript digits
        return INT_PATTERN.fullmatch(value.strip()) is not None
    return False


def validate_id(value, label='ID'):
    """
    Validate a database identifier.

    Args:
        value: Raw identifier (int or numeric string)
        label: Field name used in the message

    Returns:
        tuple: (is_valid: bool, message: str)
    """
    if value is None or value == '':
        return False, f"{label} is required"
    if not _is_int(value) or int(value) < 1:
        return False, f"{label} must be a positive integer"
    return True, f"{label} is valid"


def validate_month(month):
    if month is None or month == '':
        return False, "Month is required"
    if not _is_int(month) or not 1 <= int(month) <= 12:
        return False, "Month must be between 1 and 12"
    return True, "Month is valid"


def validate_year(year):
    if year is None or year == '':
        return False, "Year is required"
    if not _is_int(year) or not MIN_YEAR <= int(year) <= MAX_YEAR:
        return False, f"Year must be between {MIN_YEAR} and {MAX_YEAR}"
    return True, "Year is valid"


def validate_statement_period(property_id, month, year):
    """
    Validate a statement generation request.

    Requirements:
    - property id present and a positive integer
    - month 1-12
    - year within the supported range

    Returns:
        tuple: (is_valid: bool, message: str)
    """
    if property_id in (None, '') or month in (None, '') or year in (None, ''):
        return False, "Property, month, and year are required"

    for is_valid, message in (
        validate_id(property_id, 'Property ID'),
        validate_month(month),
        validate_year(year),
    ):
        if not is_valid:
            return False, message

    return True, "Statement period is valid"
