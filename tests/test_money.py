from decimal import Decimal

import pytest

from eventsettle.services.money import balance_text, format_amount, from_cents, to_cents


@pytest.mark.parametrize(
    ("value", "expected"),
    [("12.50", 1250), ("12,5", 1250), (0.1, 10), (90, 9000), (Decimal("0.125"), 12), (Decimal("0.135"), 14)],
)
def test_to_cents(value, expected):
    assert to_cents(value) == expected


@pytest.mark.parametrize("value", ["abc", "", float("nan"), float("inf")])
def test_to_cents_rejects_garbage(value):
    with pytest.raises(ValueError):
        to_cents(value)


def test_from_cents():
    assert from_cents(-1205) == Decimal("-12.05")


def test_format_amount():
    assert format_amount(3000) == "30.00 EUR"
    assert format_amount(-5, "USD") == "-0.05 USD"


def test_balance_text():
    assert balance_text(1250) == "You are owed 12.50 EUR"
    assert balance_text(-99, "INR") == "You owe 0.99 INR"
    assert balance_text(0) == "Settled up"
