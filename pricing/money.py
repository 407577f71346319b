from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from .domain import Currency
from .errors import InvalidDiscount

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Приводит число к Decimal (float через str, чтобы не тащить хвосты)"""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value)


def round_money(amount: Decimal) -> Decimal:
    """Округление до копеек, half-up"""
    return to_money(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def _check_pct(pct: int) -> None:
    if not 0 <= pct <= 100:
        raise InvalidDiscount(f"percentage must be in [0, 100], got {pct}")


def apply_percentage(amount: Number, pct: int) -> Decimal:
    """
    Цена после скидки pct%: amount * (100 - pct) / 100.
    Результат всегда в [0, amount] для amount >= 0.
    """
    _check_pct(pct)
    return round_money(to_money(amount) * (HUNDRED - pct) / HUNDRED)


def percentage_of(amount: Number, pct: Number) -> Decimal:
    """Сама сумма скидки: amount * pct / 100"""
    pct = to_money(pct)
    if not ZERO <= pct <= HUNDRED:
        raise InvalidDiscount(f"percentage must be in [0, 100], got {pct}")
    return round_money(to_money(amount) * pct / HUNDRED)


def clamp_non_negative(amount: Decimal) -> Decimal:
    return max(amount, ZERO)


# ============ Валюта ============


def convert(amount: Decimal, currency: Currency) -> Decimal:
    """Пересчёт из базовой валюты в валюту отображения"""
    return round_money(to_money(amount) * currency.exchange_rate)


def format_price(amount: Decimal, currency: Currency) -> str:
    return f"{convert(amount, currency):,.2f} {currency.symbol}"
