from datetime import datetime
from decimal import Decimal
from functools import reduce
from typing import Iterable, Optional, Tuple

from .coupons import check_coupon, discount_amount, normalize_code, rejected
from .domain import (
    CartLine,
    Coupon,
    CouponCheck,
    LineQuote,
    Offer,
    OrderTotal,
    Product,
    SCOPE_ALL,
    SCOPE_CATEGORY,
    SCOPE_PRODUCTS,
)
from .errors import ComputationInvariantViolation, CouponNotApplicable
from .ftypes import Either, Maybe
from .log import get_logger
from .money import ZERO, apply_percentage, clamp_non_negative, round_money
from .offers import resolve_offer_percentage

logger = get_logger("engine")


def _violation(message: str) -> ComputationInvariantViolation:
    logger.error("price invariant violated: %s", message)
    return ComputationInvariantViolation(message)


# ============ Цена позиции ============


def compute_line_price(product: Product, resolved_offer_pct: int) -> Decimal:
    """
    Цена за единицу после акций.
    offer_price и процент акции не складываются: покупатель получает
    меньшую из двух цен. Если ничего не применимо — базовая цена.
    """
    price = round_money(product.price)
    candidates = [price]

    if product.offer_price is not None and product.offer_price < product.price:
        candidates.append(round_money(product.offer_price))
    # процент вне [0, 100] -> InvalidDiscount; 0% даёт саму цену
    candidates.append(apply_percentage(price, resolved_offer_pct))

    unit_price = min(candidates)
    if unit_price < ZERO or unit_price > price:
        raise _violation(
            f"unit price {unit_price} of '{product.id}' outside [0, {price}]"
        )
    return unit_price


def quote_line(
    product: Product, quantity: int, offers: Iterable[Offer], now: datetime
) -> LineQuote:
    pct = resolve_offer_percentage(product, offers, now)
    unit_price = compute_line_price(product, pct)
    return LineQuote(
        product_id=product.id,
        category_id=product.category_id,
        base_price=round_money(product.price),
        offer_percentage=pct,
        unit_price=unit_price,
        quantity=quantity,
        line_total=round_money(unit_price * quantity),
    )


def quote_cart(
    lines: Iterable[CartLine],
    products: Iterable[Product],
    offers: Iterable[Offer],
    now: datetime,
) -> Either[dict, Tuple[LineQuote, ...]]:
    """
    Котирует позиции корзины по снимку товаров.
    Left({"error": ...}) если товар не найден или количество некорректно.
    """
    products = tuple(products)
    offers = tuple(offers)

    def accumulate(acc: Either[dict, tuple], line: CartLine):
        if acc.is_left:
            return acc
        if line.quantity < 1:
            return Either.left({"error": f"Invalid quantity for '{line.product_id}'"})

        found = Maybe.first(products, lambda p: p.id == line.product_id)
        if found.is_none():
            return Either.left({"error": f"Product '{line.product_id}' not found"})

        quote = quote_line(found.value, line.quantity, offers, now)
        return acc.map(lambda quotes: quotes + (quote,))

    return reduce(accumulate, lines, Either.right(()))


# ============ Итог заказа ============


def coupon_base(lines: Tuple[LineQuote, ...], coupon: Coupon) -> Decimal:
    """Сумма позиций, на которые распространяется купон"""

    def in_scope(q: LineQuote) -> bool:
        if coupon.scope == SCOPE_CATEGORY:
            return q.category_id == coupon.category_id
        if coupon.scope == SCOPE_PRODUCTS:
            return q.product_id in coupon.product_ids
        return True

    return reduce(lambda acc, q: acc + q.line_total, filter(in_scope, lines), ZERO)


def _apply_coupon(
    lines: Tuple[LineQuote, ...],
    code: str,
    subtotal: Decimal,
    now: datetime,
    coupons: Iterable[Coupon],
) -> CouponCheck:
    def with_scope(coupon: Coupon) -> Either:
        base = coupon_base(lines, coupon)
        applicable = coupon.scope == SCOPE_ALL or base > ZERO
        return Either.check(base, applicable, CouponNotApplicable(code)).map(
            lambda b: CouponCheck(
                code=code, valid=True, discount_amount=discount_amount(coupon, b)
            )
        )

    return (
        check_coupon(coupons, code, subtotal, now)
        .bind(with_scope)
        .fold(lambda error: rejected(code, error), lambda check: check)
    )


def compute_order_total(
    lines: Iterable[LineQuote],
    coupon_code: Optional[str],
    now: datetime,
    coupons: Iterable[Coupon] = (),
) -> OrderTotal:
    """
    subtotal = сумма line_total; скидка купона считается от subtotal
    после акций. Невалидный купон даёт discount=0 и причину в coupon.reason,
    заказ при этом не падает.
    """
    lines = tuple(lines)
    subtotal = round_money(reduce(lambda acc, q: acc + q.line_total, lines, ZERO))

    check = None
    discount = ZERO
    code = normalize_code(coupon_code or "")
    if code:
        check = _apply_coupon(lines, code, subtotal, now, coupons)
        discount = check.discount_amount

    if discount > subtotal:
        raise _violation(f"discount {discount} exceeds subtotal {subtotal}")

    total = clamp_non_negative(subtotal - discount)
    return OrderTotal(
        lines=lines, subtotal=subtotal, discount=discount, total=total, coupon=check
    )
