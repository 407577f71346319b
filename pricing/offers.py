from datetime import datetime
from typing import Callable, Iterable, Iterator

from .domain import Offer, Product, SCOPE_ALL, SCOPE_CATEGORY, SCOPE_PRODUCTS
from .ftypes import Maybe

MAX_OFFER_PERCENTAGE = 90


# ============ Замыкания-фильтры ============


def is_active() -> Callable[[Offer], bool]:
    return lambda o: o.is_active


def in_window(now: datetime) -> Callable[[Offer], bool]:
    """Окно starts_at/ends_at; без этих полей акция действует всегда"""
    return lambda o: (o.starts_at is None or o.starts_at <= now) and (
        o.ends_at is None or now <= o.ends_at
    )


def applies_to(product: Product) -> Callable[[Offer], bool]:
    """Покрывает ли акция товар своей областью действия"""

    def predicate(o: Offer) -> bool:
        if o.scope == SCOPE_ALL:
            return True
        if o.scope == SCOPE_CATEGORY:
            return o.category_id == product.category_id
        if o.scope == SCOPE_PRODUCTS:
            return product.id in o.product_ids
        return False

    return predicate


def iter_applicable_offers(
    product: Product, offers: Iterable[Offer], now: datetime
) -> Iterator[Offer]:
    """Лениво отдаёт активные акции, применимые к товару"""
    checks = (is_active(), in_window(now), applies_to(product))
    for offer in offers:
        if all(check(offer) for check in checks):
            yield offer


def best_offer(
    product: Product, offers: Iterable[Offer], now: datetime
) -> Maybe[Offer]:
    """Акция с максимальным процентом; при равенстве — первая по порядку"""
    applicable = tuple(iter_applicable_offers(product, offers, now))
    if not applicable:
        return Maybe.nothing()
    return Maybe.some(max(applicable, key=lambda o: o.percentage))


def resolve_offer_percentage(
    product: Product, offers: Iterable[Offer], now: datetime
) -> int:
    """
    Итоговый процент акции для товара в [0, 90].
    Берётся максимум среди применимых, проценты не суммируются.
    """
    pct = best_offer(product, offers, now).map(lambda o: o.percentage).get_or_else(0)
    return min(pct, MAX_OFFER_PERCENTAGE)
