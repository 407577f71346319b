import math
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple

from .domain import CartLine, OrderTotal, Page, Product
from .engine import compute_order_total, quote_cart
from .ftypes import Either, Maybe
from .log import get_logger
from .money import ZERO
from .store import CatalogStore, CouponStore

logger = get_logger("service")


def paginate(products: Tuple[Product, ...], page: int, limit: int) -> Page:
    """Срез каталога: page с 1, limit > 0"""
    page = max(1, int(page))
    limit = max(1, int(limit))
    total_items = len(products)
    total_pages = math.ceil(total_items / limit)
    skip = (page - 1) * limit
    return Page(
        items=products[skip : skip + limit],
        page=page,
        limit=limit,
        total_items=total_items,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


class PricingService:
    """Фасад: каталог, предпросмотр корзины и оформление заказа"""

    def __init__(self, catalog: CatalogStore, coupons: CouponStore, page_size: int = 12):
        self.catalog = catalog
        self.coupons = coupons
        self.page_size = page_size

    def list_products(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        predicate: Optional[Callable[[Product], bool]] = None,
    ) -> Page:
        """Страница каталога, опционально отфильтрованная предикатом"""
        products = tuple(filter(predicate or (lambda p: True), self.catalog.products))
        return paginate(products, page, limit or self.page_size)

    def preview(
        self, lines: Iterable[CartLine], coupon_code: Optional[str], now: datetime
    ) -> Either[dict, OrderTotal]:
        """
        Расчёт корзины для отображения. Купон только проверяется,
        usage_count не меняется.
        """
        return quote_cart(lines, self.catalog.products, self.catalog.offers(), now).map(
            lambda quotes: compute_order_total(quotes, coupon_code, now, self.coupons.all())
        )

    def place_order(
        self, lines: Iterable[CartLine], coupon_code: Optional[str], now: datetime
    ) -> Either[dict, OrderTotal]:
        """
        Итог заказа с погашением купона. Если купон кончился между
        расчётом и погашением, итог пересчитывается без него.
        """
        lines = tuple(lines)
        result = self.preview(lines, coupon_code, now)
        if result.is_left:
            return result

        order = result.value
        if order.coupon is None or not order.coupon.valid:
            return result

        committed = self.coupons.redeem(order.coupon.code)
        if committed.is_right:
            logger.info("coupon %s redeemed, total %s", order.coupon.code, order.total)
            return result

        logger.warning(
            "coupon %s lost at commit (%s), repricing without it",
            order.coupon.code, committed.value.code,
        )
        repriced = compute_order_total(order.lines, None, now)
        lost = replace(
            order.coupon, valid=False, discount_amount=ZERO, reason=committed.value.code
        )
        return Either.right(replace(repriced, coupon=lost))

    def toggle_offer(self, offer_id: str) -> Maybe:
        return self.catalog.toggle_offer(offer_id)
