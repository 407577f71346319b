import asyncio
from datetime import datetime
from functools import reduce
from typing import Dict, List, Optional, Tuple

from .domain import CartLine, Currency, Offer, Product
from .engine import quote_line
from .money import convert


# ============ Цены витрины ============


async def catalog_prices_async(
    products: List[Product],
    offers: List[Offer],
    now: datetime,
    currency: Optional[Currency] = None,
) -> List[Dict]:
    """
    Параллельно считает цены для страницы каталога.
    currency задаёт валюту отображения; без неё — базовая.
    """
    offers = tuple(offers)

    async def price_product(product: Product) -> Dict:
        await asyncio.sleep(0)

        quote = quote_line(product, 1, offers, now)
        show = (lambda amount: convert(amount, currency)) if currency else (lambda amount: amount)
        return {
            "product_id": product.id,
            "name": product.name,
            "price": show(quote.base_price),
            "unit_price": show(quote.unit_price),
            "offer_percentage": quote.offer_percentage,
            "on_sale": quote.unit_price < quote.base_price,
        }

    tasks = [price_product(p) for p in products]
    return list(await asyncio.gather(*tasks))


async def preview_carts_async(
    service, carts: Dict[str, Tuple[CartLine, ...]], coupon_codes: Dict[str, str], now: datetime
) -> Dict:
    """
    Предпросмотр нескольких корзин одновременно.
    Возвращает {cart_id: Either[dict, OrderTotal]} и сводку по скидкам.
    """

    async def preview(cart_id: str) -> Tuple[str, object]:
        await asyncio.sleep(0)
        return cart_id, service.preview(carts[cart_id], coupon_codes.get(cart_id), now)

    results = dict(await asyncio.gather(*(preview(cid) for cid in carts)))

    priced = [r.value for r in results.values() if r.is_right]
    return {
        "results": results,
        "carts_priced": len(priced),
        "carts_failed": len(results) - len(priced),
        "total_discount": reduce(lambda acc, o: acc + o.discount, priced, 0),
    }


# ============ Синхронные обёртки ============


def run_catalog_prices(
    products: List[Product],
    offers: List[Offer],
    now: datetime,
    currency: Optional[Currency] = None,
) -> List[Dict]:
    """Синхронная обёртка для UI"""
    return asyncio.run(catalog_prices_async(products, offers, now, currency))
