import re
import string
from typing import NamedTuple


class ValidationResult(NamedTuple):
    """Outcome of a validation. Unpacks as (is_valid, error_message)."""
    is_valid: bool
    error_message: str = ""

    def __bool__(self) -> bool:
        return self.is_valid


OK = ValidationResult(True)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
USERNAME_PATTERN = r'^[a-zA-Z][a-zA-Z0-9_]*$'
NAME_PATTERN = r"^[a-zA-Z\s'-]+$"
URL_PATTERN = (r'^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b'
               r'([-a-zA-Z0-9()@:%_+.~#?&/=]*)$')
DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}$'
TIME_PATTERN = r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$'
PHONE_PATTERNS = (
    r'^\+?[1-9]\d{7,14}$',  # international
    r'^\d{10}$',            # US
    r'^\+1\d{10}$',         # US with country code
)
POSTAL_PATTERNS = {
    "US": (r'^\d{5}(-\d{4})?$', "US format: 12345 or 12345-6789"),
    "CA": (r'^[A-Za-z]\d[A-Za-z] \d[A-Za-z]\d$', "Canadian format: A1A 1A1"),
    "UK": (r'^[A-Z]{1,2}\d[A-Z\d]? \d[A-Z]{2}$', "UK format: SW1A 1AA"),
}
GENERIC_POSTAL = (r'^[A-Za-z0-9\s-]{3,10}$', "3-10 characters, letters, numbers, spaces, hyphens")
DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def _matches(pattern: str, value: str) -> bool:
    return re.fullmatch(pattern, value, re.ASCII) is not None


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


class Validators:
    """Input validation utilities. Every check returns a ValidationResult."""

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """
        Validate email format.
        Pattern: username@domain.extension, at most 254 characters
        """
        if not email:
            return ValidationResult(False, "Email cannot be empty")
        if not _matches(EMAIL_PATTERN, email):
            return ValidationResult(False, "Invalid email format. Use format: example@domain.com")
        if len(email) > 254:
            return ValidationResult(False, "Email address too long (max 254 characters)")
        return OK

    @staticmethod
    def validate_password(password: str) -> ValidationResult:
        """
        Validate password strength.
        Requirements: 8-128 characters with an uppercase letter, a lowercase
        letter, a digit and a special character.
        """
        if not password:
            return ValidationResult(False, "Password cannot be empty")
        if len(password) < 8:
            return ValidationResult(False, "Password must be at least 8 characters long")
        if len(password) > 128:
            return ValidationResult(False, "Password too long (max 128 characters)")

        has_upper = has_lower = has_digit = has_special = False
        for c in password:
            if c.isupper():
                has_upper = True
            elif c.islower():
                has_lower = True
            elif c.isdigit():
                has_digit = True
            elif c in string.punctuation or c == ' ':
                has_special = True

        missing = []
        if not has_upper:
            missing.append("uppercase letter")
        if not has_lower:
            missing.append("lowercase letter")
        if not has_digit:
            missing.append("digit")
        if not has_special:
            missing.append("special character")

        if missing:
            return ValidationResult(False, "Password must contain: " + ", ".join(missing))
        return OK

    @staticmethod
    def validate_username(username: str) -> ValidationResult:
        if not username:
            return ValidationResult(False, "Username cannot be empty")
        if len(username) < 3:
            return ValidationResult(False, "Username must be at least 3 characters long")
        if len(username) > 30:
            return ValidationResult(False, "Username too long (max 30 characters)")
        if not _matches(USERNAME_PATTERN, username):
            return ValidationResult(False, "Username must start with letter and contain only "
                                           "letters, numbers, and underscores")
        return OK

    @staticmethod
    def validate_phone(phone: str) -> ValidationResult:
        """
        Validate phone number format.
        Formatting characters are ignored: "(123) 456-7890" is accepted.
        """
        if not phone:
            return ValidationResult(False, "Phone number cannot be empty")

        cleaned = Validators.normalize_phone(phone)
        if any(_matches(pattern, cleaned) for pattern in PHONE_PATTERNS):
            return OK
        return ValidationResult(False, "Invalid phone number format. Use formats like: "
                                       "+1234567890, (123) 456-7890, or 123-456-7890")

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Strip everything except digits and '+'."""
        return re.sub(r'[^0-9+]', '', phone)

    @staticmethod
    def validate_name(name: str, field_name: str = "Name") -> ValidationResult:
        """Letters, spaces, hyphens and apostrophes; at most 50 characters."""
        if not name:
            return ValidationResult(False, f"{field_name} cannot be empty")
        if len(name) > 50:
            return ValidationResult(False, f"{field_name} too long (max 50 characters)")
        if name[0] == ' ' or name[-1] == ' ':
            return ValidationResult(False, f"{field_name} cannot start or end with spaces")
        if not _matches(NAME_PATTERN, name):
            return ValidationResult(False, f"{field_name} can only contain letters, spaces, "
                                           "hyphens, and apostrophes")
        return OK

    @staticmethod
    def validate_url(url: str) -> ValidationResult:
        if not url:
            return ValidationResult(False, "URL cannot be empty")
        if not _matches(URL_PATTERN, url):
            return ValidationResult(False, "Invalid URL format. Use format: http://example.com "
                                           "or https://example.com")
        return OK

    @staticmethod
    def validate_credit_card(card_number: str) -> ValidationResult:
        """Length and Luhn checksum check. Spaces and hyphens are ignored."""
        if not card_number:
            return ValidationResult(False, "Credit card number cannot be empty")

        cleaned = re.sub(r'[ -]', '', card_number)
        if not _matches(r'\d*', cleaned):
            return ValidationResult(False, "Credit card number must contain only digits")
        if len(cleaned) < 13 or len(cleaned) > 19:
            return ValidationResult(False, "Credit card number must be 13-19 digits long")

        total = 0
        for position, char in enumerate(reversed(cleaned)):
            digit = int(char)
            if position % 2 == 1:
                digit *= 2
                if digit > 9:
                    digit -= 9
            total += digit

        if total % 10 != 0:
            return ValidationResult(False, "Invalid credit card number")
        return OK

    @staticmethod
    def validate_date(date: str) -> ValidationResult:
        """YYYY-MM-DD between 1900 and 2100, leap years included."""
        if not date:
            return ValidationResult(False, "Date cannot be empty")
        if not _matches(DATE_PATTERN, date):
            return ValidationResult(False, "Invalid date format. Use YYYY-MM-DD format")

        year, month, day = int(date[0:4]), int(date[5:7]), int(date[8:10])
        if year < 1900 or year > 2100:
            return ValidationResult(False, "Year must be between 1900 and 2100")
        if month < 1 or month > 12:
            return ValidationResult(False, "Month must be between 01 and 12")
        if day < 1 or day > 31:
            return ValidationResult(False, "Day must be between 01 and 31")

        days = DAYS_IN_MONTH[month - 1]
        if month == 2 and is_leap_year(year):
            days = 29
        if day > days:
            return ValidationResult(False, "Invalid day for the given month")
        return OK

    @staticmethod
    def validate_time(time: str) -> ValidationResult:
        if not time:
            return ValidationResult(False, "Time cannot be empty")
        if not _matches(TIME_PATTERN, time):
            return ValidationResult(False, "Invalid time format. Use HH:MM format (24-hour)")
        return OK

    @staticmethod
    def validate_postal_code(postal_code: str, country: str = "US") -> ValidationResult:
        if not postal_code:
            return ValidationResult(False, "Postal code cannot be empty")

        pattern, format_msg = POSTAL_PATTERNS.get(country, GENERIC_POSTAL)
        if not _matches(pattern, postal_code):
            return ValidationResult(False, f"Invalid postal code format. Expected {format_msg}")
        return OK

    @staticmethod
    def to_iso(date: str, time: str = "00:00") -> str:
        """Combine a validated date and HH:MM time into the record timestamp format."""
        hours, minutes = time.split(":")
        return f"{date}T{int(hours):02d}:{minutes}:00Z"
