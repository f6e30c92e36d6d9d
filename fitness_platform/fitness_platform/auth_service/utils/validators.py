"""
Input validation for registration and login.
"""
import re
from typing import List, Optional

PASSWORD_MIN_LENGTH = 8
PASSWORD_SYMBOLS = "@$!%*?&"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LOWERCASE_RE = re.compile(r"[a-z]")
UPPERCASE_RE = re.compile(r"[A-Z]")
DIGIT_RE = re.compile(r"[0-9]")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def validate_password(password: Optional[str]) -> List[str]:
    """
    Check a password against every complexity rule.

    Returns:
        A list with one message per violated rule; empty when the password is acceptable.
    """
    password = password or ""
    errors = []

    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not LOWERCASE_RE.search(password):
        errors.append("Password must contain at least one lowercase letter")
    if not UPPERCASE_RE.search(password):
        errors.append("Password must contain at least one uppercase letter")
    if not DIGIT_RE.search(password):
        errors.append("Password must contain at least one number")
    if not any(ch in PASSWORD_SYMBOLS for ch in password):
        errors.append(f"Password must contain at least one special character ({PASSWORD_SYMBOLS})")

    return errors
