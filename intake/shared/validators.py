"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from .. import config

NAME_PATTERN = re.compile(r"^[a-zA-ZÀ-ÿ\s]+$")
PHONE_PATTERN = re.compile(r"^\(\d{2}\) \d{4,5}-\d{4}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
POSTAL_CODE_PATTERN = re.compile(r"^\d{5}-\d{3}$")

MIN_AGE = 16
MAX_AGE = 120

# Structurally valid looking CPFs that must still be rejected.
# Not an official list, extend it through CPF_BLOCKLIST_EXTRA.
CPF_BLOCKLIST = frozenset(
    [str(digit) * 11 for digit in range(10)]
    + [
        # sequential patterns
        "12345678909",
        "98765432100",
        "12345678901",
        "01234567890",
        "10203040506",
        "20304050607",
        "30405060708",
        "40506070809",
        "50607080910",
        "60708091011",
        "70809101112",
        "80910111213",
        "90111213140",
        "01112131415",
        "11213141516",
        "21314151617",
        # values commonly used in tests
        "12312312312",
        "98798798798",
        "11144477735",
        "12345678912",
        "00000000191",
        "12345678900",
    ]
)


def only_digits(value: Optional[str]) -> str:
    """Strip every non-digit character"""
    return re.sub(r"\D", "", value or "")


def is_blank(value) -> bool:
    """True for None and whitespace-only strings"""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def validate_required(value, message: str = "This field is required"):
    """
    Validate that a value was provided.

    Raises:
        ValueError: If the value is None or blank
    """
    if is_blank(value):
        raise ValueError(message)
    return value


def validate_full_name(name: str) -> str:
    """
    Validate a person's full name.

    Args:
        name: Name as typed by the user

    Returns:
        Stripped name

    Raises:
        ValueError: If the name is too short or contains anything but letters and spaces
    """
    name = validate_required(name, "Name is required").strip()

    if len(name) < 3:
        raise ValueError("Name must have at least 3 characters")

    if not NAME_PATTERN.match(name):
        raise ValueError("Name must contain only letters")

    return name


def validate_phone(phone: str) -> str:
    """
    Validate a Brazilian phone number in (DD) NNNN-NNNN or (DD) NNNNN-NNNN form.

    Raises:
        ValueError: If the phone number is invalid
    """
    validate_required(phone, "Phone is required")

    if not PHONE_PATTERN.match(phone.strip()):
        raise ValueError("Invalid phone number")

    return phone.strip()


def validate_email(email: str) -> str:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    email = validate_required(email, "Email is required").strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email")

    return email


def parse_date(value: str) -> date:
    """Parse ISO (YYYY-MM-DD) or DD/MM/YYYY dates"""
    value = value.strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError("Invalid date")


def calculate_age(birth_date: date, today: date) -> int:
    """Age in whole years, taking month and day into account"""
    return relativedelta(today, birth_date).years


def validate_birth_date(value: str, today: Optional[date] = None) -> date:
    """
    Validate a birth date.

    Args:
        value: Date string (YYYY-MM-DD or DD/MM/YYYY)
        today: Reference date, defaults to date.today()

    Returns:
        Parsed date

    Raises:
        ValueError: If the date cannot be parsed, is in the future or the age is out of range
    """
    validate_required(value, "Birth date is required")
    today = today or date.today()

    birth_date = parse_date(value)

    if birth_date > today:
        raise ValueError("Birth date cannot be in the future")

    age = calculate_age(birth_date, today)
    if age < MIN_AGE or age > MAX_AGE:
        raise ValueError(f"Age must be between {MIN_AGE} and {MAX_AGE} years")

    return birth_date


def validate_postal_code(postal_code: str) -> str:
    """
    Validate a CEP in 00000-000 form.

    Raises:
        ValueError: If the postal code is invalid
    """
    validate_required(postal_code, "Postal code is required")

    if not POSTAL_CODE_PATTERN.match(postal_code.strip()):
        raise ValueError("Invalid postal code (format: 00000-000)")

    return postal_code.strip()


def _cpf_check_digit(digits: str) -> int:
    """Check digit over ``digits`` with weights len+1 down to 2"""
    weight = len(digits) + 1
    total = sum(int(digit) * (weight - i) for i, digit in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder in (10, 11) else remainder


def validate_cpf(cpf: str, blocklist: Optional[Iterable[str]] = None) -> str:
    """
    Validate a CPF number.

    Runs the length check, the blocklist and both check digits.

    Args:
        cpf: CPF, formatted or digits only
        blocklist: Values to reject, defaults to CPF_BLOCKLIST plus CPF_BLOCKLIST_EXTRA

    Returns:
        The 11 CPF digits

    Raises:
        ValueError: If the CPF is invalid
    """
    validate_required(cpf, "CPF is required")

    digits = only_digits(cpf)
    if len(digits) != 11:
        raise ValueError("CPF must have 11 digits")

    if blocklist is None:
        blocklist = CPF_BLOCKLIST | config.CPF_BLOCKLIST_EXTRA
    if digits in blocklist:
        raise ValueError("Invalid CPF")

    if _cpf_check_digit(digits[:9]) != int(digits[9]):
        raise ValueError("Invalid CPF")

    if _cpf_check_digit(digits[:10]) != int(digits[10]):
        raise ValueError("Invalid CPF")

    return digits


def validate_choice(value: str, choices: Iterable[str], label: str) -> str:
    """
    Validate that a selection belongs to a fixed set.

    Raises:
        ValueError: If nothing was selected or the value is unknown
    """
    validate_required(value, f"{label} is required")

    if value not in choices:
        raise ValueError(f"Invalid {label.lower()} option")

    return value


def validate_flag(value: Optional[bool], message: str = "This field is required") -> bool:
    """
    Validate a required yes/no flag.

    Raises:
        ValueError: If the flag was left unset
    """
    if value is None:
        raise ValueError(message)
    return bool(value)
