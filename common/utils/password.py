"""
Password strength rules for new and reset passwords.

Every rule is evaluated so the form can list all problems at once.
"""

import re
from typing import List, Tuple

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

# (pattern that must match, message when it does not)
CHARACTER_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"\d"), "Password must contain at least one digit"),
    # Any symbol: not a letter, digit or whitespace
    (re.compile(r"[^A-Za-z0-9\s]"), "Password must contain at least one special character"),
]


def validate_password(
    password: str,
    min_length: int = MIN_PASSWORD_LENGTH,
    max_length: int = MAX_PASSWORD_LENGTH,
) -> Tuple[bool, List[str]]:
    """
    Check a password against the length and character rules.

    Args:
        password: Candidate password
        min_length: Shortest accepted length
        max_length: Longest accepted length (bcrypt input is bounded)

    Returns:
        Tuple of (is_valid, messages for every failed rule)

    Example:
        >>> validate_password("Str0ng!Pass")
        (True, [])
    """
    errors: List[str] = []

    if len(password) < min_length:
        errors.append(f"Password must be at least {min_length} characters")
    elif len(password) > max_length:
        errors.append(f"Password must be no more than {max_length} characters")

    errors.extend(message for pattern, message in CHARACTER_RULES if not pattern.search(password))

    return not errors, errors
