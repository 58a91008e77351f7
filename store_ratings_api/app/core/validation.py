"""
Field validation rules shared by schemas and services.

Every rule raises ``ValidationError`` with a message suitable for
returning to the client unchanged.
"""

import re

from .errors import ValidationError
from .permissions import Role


NAME_MIN_LENGTH = 20
NAME_MAX_LENGTH = 60
ADDRESS_MAX_LENGTH = 400
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16
RATING_MIN = 1
RATING_MAX = 5

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UPPERCASE_RE = re.compile(r"[A-Z]")
SYMBOL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def validate_name(name: str) -> str:
    if not name or not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationError("Name must be 20-60 characters")
    return name


def validate_address(address: str) -> str:
    if not address or len(address) > ADDRESS_MAX_LENGTH:
        raise ValidationError("Address must be up to 400 characters")
    return address


def validate_email(email: str) -> str:
    if not email or not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    return email


def validate_password(password: str) -> str:
    """Enforce the password policy.

    8 to 16 characters, at least one uppercase letter and at least one
    symbol from ``!@#$%^&*(),.?":{}|<>``.
    """
    if (
        not password
        or not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH
        or not UPPERCASE_RE.search(password)
        or not SYMBOL_RE.search(password)
    ):
        raise ValidationError(
            "Password must be 8-16 characters with uppercase and special character"
        )
    return password


def validate_rating(value) -> int:
    # bool is an int subclass; True must not count as a rating of 1
    if isinstance(value, bool) or not isinstance(value, int) or not RATING_MIN <= value <= RATING_MAX:
        raise ValidationError("Rating must be between 1 and 5")
    return value


def validate_role(value) -> Role:
    role = Role.parse(value)
    if role is None:
        raise ValidationError("Invalid role")
    return role
