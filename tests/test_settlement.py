import math

import pytest

from eventsettle.db.models import SuggestedPayment
from eventsettle.services.errors import InvalidBalance
from eventsettle.services.settlement import apply_payments, simplify


def test_scenario_a_suggestions():
    balances = {"alice": 6000, "bob": -3000, "carol": -3000}

    payments = simplify(balances, group_id="g1")

    assert payments == [
        SuggestedPayment(from_member_id="bob", to_member_id="alice", amount_cents=3000, group_id="g1"),
        SuggestedPayment(from_member_id="carol", to_member_id="alice", amount_cents=3000, group_id="g1"),
    ]


def test_scenario_c_single_suggestion():
    payments = simplify({"alice": 3000, "bob": 0, "carol": -3000})
    assert payments == [SuggestedPayment(from_member_id="carol", to_member_id="alice", amount_cents=3000)]


def test_scenario_d_nothing_to_settle():
    assert simplify({"alice": 0, "bob": 0, "carol": 0}) == []


def test_order_does_not_depend_on_input_order():
    forward = {"alice": 500, "bob": 700, "carol": -400, "dave": -800}
    backward = dict(reversed(list(forward.items())))
    assert simplify(forward) == simplify(backward)


def test_replaying_suggestions_settles_everyone():
    balances = {"a": 1234, "b": -1000, "c": 4321, "d": -2555, "e": -2000, "f": 0}

    payments = simplify(balances)
    after = apply_payments(balances, payments)

    assert all(value == 0 for value in after.values())
    assert sum(p.amount_cents for p in payments) == 1234 + 4321


def test_number_of_payments_is_bounded():
    balances = {"a": 1000, "b": 2000, "c": -500, "d": -700, "e": -1800}
    payments = simplify(balances)
    assert len(payments) <= 2 + 3 - 1


def test_each_payment_moves_both_sides_towards_zero():
    balances = {"a": 900, "b": -300, "c": -600}
    for payment in simplify(balances):
        after = apply_payments(balances, [payment])
        assert abs(after[payment.from_member_id]) < abs(balances[payment.from_member_id])
        assert abs(after[payment.to_member_id]) < abs(balances[payment.to_member_id])


def test_tolerance_skips_dust():
    payments = simplify({"a": 1, "b": 1000, "c": -1001}, tolerance_cents=1)
    assert payments == [SuggestedPayment(from_member_id="c", to_member_id="b", amount_cents=1000)]


def test_whole_float_balances_are_accepted():
    payments = simplify({"a": 300.0, "b": -300.0})
    assert payments == [SuggestedPayment(from_member_id="b", to_member_id="a", amount_cents=300)]


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, 12.5, "10"])
def test_invalid_balance(value):
    with pytest.raises(InvalidBalance):
        simplify({"a": value, "b": 0})


def test_negative_tolerance_is_rejected():
    with pytest.raises(ValueError):
        simplify({"a": 0, "b": 100, "c": -100}, tolerance_cents=-1)
