from eventsettle.db.models import Member, OverallBalance, SuggestedPayment
from eventsettle.services.summary import format_balances, format_overall, format_payments

MEMBERS = [Member(id="a", name="Alice"), Member(id="b", name="Bob"), Member(id="c", name="Carol")]


def test_format_balances():
    text = format_balances({"a": 6000, "b": -3000, "c": -3000}, MEMBERS)
    assert text.splitlines() == ["Balances:", "• Alice: 60.00 EUR", "• Bob: -30.00 EUR", "• Carol: -30.00 EUR"]


def test_format_payments():
    text = format_payments([SuggestedPayment("b", "a", 3000), SuggestedPayment("x", "a", 1)], MEMBERS)
    assert "• Bob → Alice: 30.00 EUR" in text
    assert "• x → Alice: 0.01 EUR" in text


def test_format_payments_when_settled():
    assert format_payments([], MEMBERS) == "All settled!"


def test_format_overall_partial():
    text = format_overall(OverallBalance(total_cents=-500, failed_group_ids=("g2",)))
    assert text.startswith("You owe 5.00 EUR")
    assert "partial" in text
