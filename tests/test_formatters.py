"""Tests for the input masks."""

from __future__ import annotations

import pytest

from intake.shared.formatters import format_cpf, format_phone, format_postal_code


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("529", "529"),
        ("5299", "529.9"),
        ("5299822", "529.982.2"),
        ("52998224725", "529.982.247-25"),
        ("529.982.247-25", "529.982.247-25"),
        ("5299822472599", "529.982.247-25"),
    ],
)
def test_format_cpf(raw, expected):
    assert format_cpf(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        ("1", "(1"),
        ("1194", "(11) 94"),
        ("2133334444", "(21) 3333-4444"),
        ("11945555555", "(11) 94555-5555"),
        ("(11) 94555-55559", "(11) 94555-5555"),
    ],
)
def test_format_phone(raw, expected):
    assert format_phone(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0131", "0131"),
        ("01310100", "01310-100"),
        ("01310-1009", "01310-100"),
        ("abc", ""),
    ],
)
def test_format_postal_code(raw, expected):
    assert format_postal_code(raw) == expected
