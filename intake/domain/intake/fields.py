"""Field catalog for the intake form and the per-field validator"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ...shared import validators
from .schemas import FieldValue, FormState, ValidationResult

PERSONAL = "personal"
ADDRESS = "address"
PREFERENCES = "preferences"
SECTIONS = (PERSONAL, ADDRESS, PREFERENCES)

GENDER_OPTIONS = ("M", "F", "OUTRO")

SALARY_BRACKETS = (
    "ate-1-salario",
    "1-a-2-salarios",
    "2-a-3-salarios",
    "3-a-5-salarios",
    "5-a-10-salarios",
    "10-a-20-salarios",
    "acima-20-salarios",
    "prefiro-nao-informar",
)

ORIENTATION_AREAS = (
    "juridica",
    "financeira",
    "psicopedagogica",
    "contabil",
    "psicologica",
    "medica",
    "mentoria",
    "empresarial",
    "curriculo",
    "odontologica",
    "fisioterapeuta",
    "artesanato",
    "veicular",
    "redesSocias",
)

REFERRAL_SOURCES = ("internet", "redes-sociais", "indicacao", "igreja", "outros")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    section: str
    required: bool = True
    is_flag: bool = False
    rule: Optional[Callable] = None

    @property
    def required_message(self) -> str:
        return f"{self.label} is required"


def _text(name: str, label: str, section: str) -> FieldSpec:
    return FieldSpec(name, label, section)


def _choice(name: str, label: str, section: str, choices) -> FieldSpec:
    return FieldSpec(name, label, section, rule=lambda v: validators.validate_choice(v, choices, label))


FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        # personal
        FieldSpec("full_name", "Name", PERSONAL, rule=validators.validate_full_name),
        FieldSpec("phone", "Phone", PERSONAL, rule=validators.validate_phone),
        FieldSpec("email", "Email", PERSONAL, rule=validators.validate_email),
        FieldSpec("birth_date", "Birth date", PERSONAL, rule=validators.validate_birth_date),
        FieldSpec("cpf", "CPF", PERSONAL, rule=validators.validate_cpf),
        _choice("gender", "Gender", PERSONAL, GENDER_OPTIONS),
        _choice("salary_bracket", "Salary bracket", PERSONAL, SALARY_BRACKETS),
        _text("profession", "Profession", PERSONAL),
        # address
        FieldSpec("postal_code", "Postal code", ADDRESS, rule=validators.validate_postal_code),
        _text("street", "Street", ADDRESS),
        _text("number", "Number", ADDRESS),
        FieldSpec("complement", "Complement", ADDRESS, required=False),
        _text("neighborhood", "Neighborhood", ADDRESS),
        _text("city", "City", ADDRESS),
        _text("state", "State", ADDRESS),
        # preferences
        _choice("orientation_area", "Orientation area", PREFERENCES, ORIENTATION_AREAS),
        _choice("referral_source", "Referral source", PREFERENCES, REFERRAL_SOURCES),
        FieldSpec("other_area_suggestion", "Other area suggestion", PREFERENCES, required=False),
        FieldSpec("is_volunteer", "Volunteer", PREFERENCES, is_flag=True),
    )
}

REQUIRED_FIELDS = tuple(name for name, spec in FIELDS.items() if spec.required)
ADDRESS_LOOKUP_FIELDS = ("street", "neighborhood", "city", "state")


def get_field(name: str) -> FieldSpec:
    try:
        return FIELDS[name]
    except KeyError:
        raise ValueError(f"Unknown field: {name}") from None


def fields_in_section(section: str, required_only: bool = True) -> list[str]:
    if section not in SECTIONS:
        raise ValueError(f"Unknown section: {section}")
    return [
        name
        for name, spec in FIELDS.items()
        if spec.section == section and (spec.required or not required_only)
    ]


def empty_form() -> FormState:
    """A fresh FormState with every field unset"""
    return {name: (None if spec.is_flag else "") for name, spec in FIELDS.items()}


def validate_field(name: str, value: FieldValue, today: Optional[date] = None) -> ValidationResult:
    """
    Evaluate the rules for a single field.

    An empty required field always reports the field's "required" message,
    whatever its format rule would say.

    Raises:
        ValueError: If the field is unknown
    """
    spec = get_field(name)

    if spec.is_flag:
        try:
            validators.validate_flag(value if isinstance(value, bool) else None, spec.required_message)
        except ValueError as e:
            return ValidationResult(valid=False, message=str(e))
        return ValidationResult(valid=True)

    if not spec.required:
        return ValidationResult(valid=True)

    if validators.is_blank(value):
        return ValidationResult(valid=False, message=spec.required_message)

    if spec.rule is None:
        return ValidationResult(valid=True)

    try:
        if name == "birth_date":
            spec.rule(str(value), today=today)
        else:
            spec.rule(str(value))
    except ValueError as e:
        return ValidationResult(valid=False, message=str(e))

    return ValidationResult(valid=True)
