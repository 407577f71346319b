from datetime import datetime
from decimal import Decimal
from typing import Iterable

from .domain import Coupon, CouponCheck, PERCENTAGE
from .errors import (
    CouponError,
    CouponExhausted,
    CouponExpired,
    CouponInactive,
    CouponMinimumNotMet,
    CouponNotFound,
    CouponNotStarted,
)
from .ftypes import Either, Maybe
from .log import get_logger
from .money import ZERO, percentage_of, round_money, to_money

logger = get_logger("coupons")


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def find_coupon(coupons: Iterable[Coupon], code: str) -> Maybe[Coupon]:
    """Поиск купона по коду без учёта регистра"""
    wanted = normalize_code(code)
    return Maybe.first(coupons, lambda c: c.code == wanted)


def is_exhausted(coupon: Coupon) -> bool:
    return coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit


def check_coupon(
    coupons: Iterable[Coupon], code: str, subtotal: Decimal, now: datetime
) -> Either[CouponError, Coupon]:
    """
    Цепочка проверок купона, первая неудачная возвращает Left:
    not found -> expired -> not started -> exhausted -> inactive -> min order.
    Ничего не меняет: usage_count растёт только при погашении.
    """
    key = normalize_code(code)
    return (
        find_coupon(coupons, key)
        .to_either(CouponNotFound(key))
        .bind(
            lambda c: Either.check(
                c, c.expires_at is None or now <= c.expires_at, CouponExpired(key)
            )
        )
        .bind(
            lambda c: Either.check(
                c, c.starts_at is None or c.starts_at <= now, CouponNotStarted(key)
            )
        )
        .bind(lambda c: Either.check(c, not is_exhausted(c), CouponExhausted(key)))
        .bind(lambda c: Either.check(c, c.is_active, CouponInactive(key)))
        .bind(
            lambda c: Either.check(
                c,
                to_money(subtotal) >= c.min_order_amount,
                CouponMinimumNotMet(
                    key, f"minimum order amount is {c.min_order_amount}"
                ),
            )
        )
    )


def discount_amount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """
    Сумма скидки по купону, никогда не больше subtotal.
    Процентный купон дополнительно ограничен max_discount.
    """
    subtotal = round_money(subtotal)
    if coupon.discount_type == PERCENTAGE:
        amount = percentage_of(subtotal, coupon.value)
        if coupon.max_discount is not None:
            amount = min(amount, coupon.max_discount)
    else:
        amount = round_money(coupon.value)
    return min(amount, subtotal)


def rejected(code: str, error: CouponError) -> CouponCheck:
    logger.info("coupon %s rejected: %s", code, error.code)
    return CouponCheck(code=code, valid=False, discount_amount=ZERO, reason=error.code)


def validate_coupon(
    code: str, subtotal: Decimal, now: datetime, coupons: Iterable[Coupon]
) -> CouponCheck:
    """Проверяет купон и считает скидку для переданного subtotal"""
    key = normalize_code(code)
    return check_coupon(coupons, key, subtotal, now).fold(
        lambda error: rejected(key, error),
        lambda coupon: CouponCheck(
            code=key, valid=True, discount_amount=discount_amount(coupon, subtotal)
        ),
    )
