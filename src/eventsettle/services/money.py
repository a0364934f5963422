from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN


CENT = Decimal("0.01")


def to_cents(value: str | float | int | Decimal) -> int:
    if isinstance(value, str):
        value = value.replace(",", ".").strip()
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return int((amount / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * CENT).quantize(CENT)


def format_amount(cents: int, currency: str = "EUR") -> str:
    sign = "-" if cents < 0 else ""
    units, rest = divmod(abs(cents), 100)
    return f"{sign}{units}.{rest:02d} {currency}"


def balance_text(cents: int, currency: str = "EUR") -> str:
    if cents > 0:
        return f"You are owed {format_amount(cents, currency)}"
    if cents < 0:
        return f"You owe {format_amount(-cents, currency)}"
    return "Settled up"
