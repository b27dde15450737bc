"""Input masks applied while the user types"""

from .validators import only_digits


def format_cpf(value: str) -> str:
    """Mask a CPF as 000.000.000-00, dropping extra digits"""
    digits = only_digits(value)[:11]
    if len(digits) <= 3:
        return digits
    if len(digits) <= 6:
        return f"{digits[:3]}.{digits[3:]}"
    if len(digits) <= 9:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:]}"
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_phone(value: str) -> str:
    """
    Mask a phone number as (00) 00000-0000 or (00) 0000-0000.

    Ten digits are treated as a landline, eleven as a mobile number.
    """
    digits = only_digits(value)[:11]
    if not digits:
        return ""
    if len(digits) <= 2:
        return f"({digits}"
    if len(digits) <= 6:
        return f"({digits[:2]}) {digits[2:]}"
    if len(digits) <= 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"


def format_postal_code(value: str) -> str:
    """Mask a CEP as 00000-000"""
    digits = only_digits(value)[:8]
    if len(digits) <= 5:
        return digits
    return f"{digits[:5]}-{digits[5:]}"
