"""Conversion of a completed form into the profile service payload"""

from ...shared.validators import only_digits
from .schemas import AddressPayload, FormState, PhonePayload, ProfileUpdate

MINIMUM_WAGE = 1518.00

# bracket -> (min, max) in minimum wages
SALARY_RANGES = {
    "ate-1-salario": (0, 1),
    "1-a-2-salarios": (1, 2),
    "2-a-3-salarios": (2, 3),
    "3-a-5-salarios": (3, 5),
    "5-a-10-salarios": (5, 10),
    "10-a-20-salarios": (10, 20),
    "acima-20-salarios": (20, 30),
    "prefiro-nao-informar": (0, 0),
}


def parse_phone(phone: str) -> PhonePayload:
    """
    Split a phone number into area code, prefix and suffix.

    Eleven digits are a mobile number (assumed to have WhatsApp), ten digits a landline.

    Raises:
        ValueError: If the number has neither 10 nor 11 digits
    """
    digits = only_digits(phone)
    if len(digits) == 11:
        return PhonePayload(ddd=digits[:2], prefixo=digits[2:7], sufixo=digits[7:], whatsapp=True)
    if len(digits) == 10:
        return PhonePayload(ddd=digits[:2], prefixo=digits[2:6], sufixo=digits[6:], whatsapp=False)
    raise ValueError("Invalid phone number format")


def salary_range(bracket: str) -> tuple[float, float]:
    low, high = SALARY_RANGES.get(bracket, (0, 1))
    return MINIMUM_WAGE * low, MINIMUM_WAGE * high


def _text(form: FormState, name: str) -> str:
    value = form.get(name)
    return value.strip() if isinstance(value, str) else ""


def build_profile_payload(form: FormState) -> ProfileUpdate:
    """
    Build the second-phase submission from a validated form.

    Raises:
        ValueError: If the form cannot be converted
    """
    min_income, max_income = salary_range(_text(form, "salary_bracket"))

    return ProfileUpdate(
        full_name=_text(form, "full_name"),
        email=_text(form, "email").lower(),
        cpf=only_digits(_text(form, "cpf")),
        birth_date=_text(form, "birth_date"),
        min_income=min_income,
        max_income=max_income,
        gender=_text(form, "gender"),
        profession=_text(form, "profession"),
        orientation_area=_text(form, "orientation_area"),
        referral_source=_text(form, "referral_source"),
        other_area_suggestion=_text(form, "other_area_suggestion") or None,
        address=AddressPayload(
            cep=only_digits(_text(form, "postal_code")),
            numero=_text(form, "number"),
            complemento=_text(form, "complement") or None,
        ),
        phone=parse_phone(_text(form, "phone")),
        is_volunteer=bool(form.get("is_volunteer")),
    )
