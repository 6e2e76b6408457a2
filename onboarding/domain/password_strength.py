"""Password strength advisor."""

from enum import Enum

SPECIAL_CHARACTERS = "@$!%*?&"
MIN_LENGTH = 8


class PasswordStrength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


def password_score(password: str) -> int:
    """
    Score a password from 0 to 5.

    One point for reaching the minimum length (shorter passwords score 0),
    plus one each for a lowercase letter, an uppercase letter, a digit and
    a special character.
    """
    if password is None or len(password) < MIN_LENGTH:
        return 0

    has_lower = has_upper = has_digit = has_special = False
    for char in password:
        if "a" <= char <= "z":
            has_lower = True
        elif "A" <= char <= "Z":
            has_upper = True
        elif "0" <= char <= "9":
            has_digit = True
        elif char in SPECIAL_CHARACTERS:
            has_special = True

    return 1 + sum((has_lower, has_upper, has_digit, has_special))


def check_password_strength(password: str) -> PasswordStrength:
    score = password_score(password)
    if score <= 2:
        return PasswordStrength.WEAK
    if score <= 4:
        return PasswordStrength.MEDIUM
    return PasswordStrength.STRONG
