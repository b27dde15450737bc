"""Tests for completion progress and section completeness."""

from __future__ import annotations

from intake.domain.intake.fields import REQUIRED_FIELDS, empty_form, fields_in_section
from intake.domain.intake.progress import completion_percent, is_filled, is_section_complete, section_summary
from intake.domain.intake.validation_store import ValidationStateStore


class TestCompletionPercent:
    def test_empty_form_is_zero(self):
        assert completion_percent(empty_form()) == 0

    def test_complete_form_is_hundred(self, complete_form_values):
        form = empty_form()
        form.update(complete_form_values)
        assert completion_percent(form) == 100

    def test_monotonic_while_filling_required_fields(self, complete_form_values):
        form = empty_form()
        previous = completion_percent(form)
        for name in REQUIRED_FIELDS:
            form[name] = complete_form_values[name]
            current = completion_percent(form)
            assert current >= previous
            previous = current
        assert previous == 100

    def test_optional_fields_do_not_count(self, complete_form_values):
        form = empty_form()
        form["full_name"] = "Maria da Silva"
        before = completion_percent(form)
        form["complement"] = "apto 12"
        form["other_area_suggestion"] = "astrologia"
        assert completion_percent(form) == before

    def test_rounds_half_up(self):
        form = empty_form()
        # 1 of 17 required fields: 5.88 -> 6
        form["full_name"] = "Maria"
        assert len(REQUIRED_FIELDS) == 17
        assert completion_percent(form) == 6

    def test_false_flag_counts_as_filled(self):
        form = empty_form()
        form["is_volunteer"] = False
        assert completion_percent(form) == 6
        assert is_filled(False)
        assert not is_filled(None)
        assert not is_filled("   ")


class TestSections:
    def test_section_needs_filled_and_valid_fields(self, complete_form_values):
        form = empty_form()
        validation = ValidationStateStore()
        for name in fields_in_section("preferences"):
            form[name] = complete_form_values[name]

        # filled but never validated
        assert not is_section_complete(form, validation, "preferences")

        for name in fields_in_section("preferences"):
            validation.validate_now(name, form[name])
        assert is_section_complete(form, validation, "preferences")

    def test_invalid_field_breaks_section(self, complete_form_values):
        form = empty_form()
        validation = ValidationStateStore()
        for name in fields_in_section("address"):
            form[name] = complete_form_values[name]
            validation.validate_now(name, form[name])
        assert is_section_complete(form, validation, "address")

        validation.apply("postal_code", False, "Postal code not found")
        assert not is_section_complete(form, validation, "address")

    def test_optional_fields_are_not_needed(self, complete_form_values):
        form = empty_form()
        validation = ValidationStateStore()
        for name in fields_in_section("address"):
            form[name] = complete_form_values[name]
            validation.validate_now(name, form[name])
        assert form["complement"] == ""
        assert is_section_complete(form, validation, "address")

    def test_summary(self, complete_form_values):
        form = empty_form()
        form.update(complete_form_values)
        validation = ValidationStateStore()
        for name in fields_in_section("personal"):
            validation.validate_now(name, form[name])

        assert section_summary(form, validation) == {
            "personal": True,
            "address": False,
            "preferences": False,
        }
