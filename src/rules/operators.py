"""
Comparison operators used by rule conditions
"""
import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

OPERATORS = (
    'equals',
    'contains',
    'starts_with',
    'ends_with',
    'regex_match',
    'greater_than',
    'less_than',
    'exists',
    'not_exists',
)


def to_text(value: Any) -> str:
    """String form of a condition value"""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_number(value: Any) -> float:
    """Numeric form of a condition value, NaN when it has none"""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return math.nan


def strict_equals(actual: Any, expected: Any) -> bool:
    """Equality without type coercion"""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    numbers = (int, float)
    if isinstance(actual, numbers) and isinstance(expected, numbers):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


def is_present(value: Any) -> bool:
    return value is not None and value != ''


def apply_operator(actual: Any, operator: str, expected: Any, case_sensitive: bool = True) -> bool:
    """Apply a comparison operator; never raises"""
    actual_str = to_text(actual)
    expected_str = to_text(expected)
    if not case_sensitive:
        actual_str = actual_str.lower()
        expected_str = expected_str.lower()

    if operator == 'equals':
        return strict_equals(actual, expected)
    elif operator == 'contains':
        return expected_str in actual_str
    elif operator == 'starts_with':
        return actual_str.startswith(expected_str)
    elif operator == 'ends_with':
        return actual_str.endswith(expected_str)
    elif operator == 'regex_match':
        flags = 0 if case_sensitive else re.IGNORECASE
        try:
            result = re.search(to_text(expected), to_text(actual), flags) is not None
        except (re.error, OverflowError) as e:
            logger.error(f"Invalid regex pattern '{expected}': {e}")
            return False
        logger.debug(f"Regex '{expected}' against '{to_text(actual)[:80]}' -> {result}")
        return result
    elif operator == 'greater_than':
        return to_number(actual) > to_number(expected)
    elif operator == 'less_than':
        return to_number(actual) < to_number(expected)
    elif operator == 'exists':
        return is_present(actual)
    elif operator == 'not_exists':
        return not is_present(actual)

    logger.error(f"Unknown operator: {operator}")
    return False
