"""Completion progress and per-section completeness"""

import math

from ...shared.validators import is_blank
from .fields import REQUIRED_FIELDS, SECTIONS, fields_in_section
from .schemas import FieldState, FieldValue, FormState
from .validation_store import ValidationStateStore


def is_filled(value: FieldValue) -> bool:
    """Non-blank strings and set booleans count as filled"""
    if isinstance(value, bool):
        return True
    return not is_blank(value)


def completion_percent(form: FormState) -> int:
    """Share of required fields that are filled, rounded half up to 0-100"""
    total = len(REQUIRED_FIELDS)
    if not total:
        return 100
    filled = sum(1 for name in REQUIRED_FIELDS if is_filled(form.get(name)))
    return int(math.floor(filled * 100 / total + 0.5))


def is_section_complete(form: FormState, validation: ValidationStateStore, section: str) -> bool:
    """Every required field of the section is filled and currently VALID"""
    return all(
        is_filled(form.get(name)) and validation.state(name) is FieldState.VALID
        for name in fields_in_section(section)
    )


def section_summary(form: FormState, validation: ValidationStateStore) -> dict[str, bool]:
    return {section: is_section_complete(form, validation, section) for section in SECTIONS}
