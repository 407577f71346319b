"""
Граница хранения: загрузка документов из seed.json и хранилище в памяти.

Документы приходят в «рыхлой» схеме (camelCase, как в базе магазина);
здесь они один раз проверяются и превращаются в иммутабельные записи.
Битая запись отклоняется при загрузке, а не где-то внутри расчёта цены.
"""
import json
import threading
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Tuple

from .domain import (
    Coupon,
    Currency,
    DISCOUNT_TYPES,
    Offer,
    PERCENTAGE,
    Product,
    SCOPES,
    SCOPE_CATEGORY,
    SCOPE_PRODUCTS,
)
from .coupons import find_coupon, is_exhausted, normalize_code
from .errors import CouponExhausted, CouponNotFound, InvalidRecord
from .ftypes import Either, Maybe
from .log import get_logger
from .money import to_money

logger = get_logger("store")


# ============ Разбор полей ============


def _pick(doc: dict, *keys, default=None):
    """Первое присутствующее поле: snake_case или camelCase"""
    return next((doc[k] for k in keys if doc.get(k) is not None), default)


def _record_id(doc: dict) -> str:
    return str(_pick(doc, "id", "_id", default="?"))


def _money(kind: str, doc: dict, value, field: str) -> Decimal:
    try:
        return to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRecord(kind, _record_id(doc), f"{field} is not a number: {value!r}")


def _ts(kind: str, doc: dict, value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise InvalidRecord(kind, _record_id(doc), f"bad timestamp {value!r}")
    # все метки храним naive в UTC, чтобы сравнивать с now без tzinfo
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def _required(kind: str, doc: dict, *keys):
    value = _pick(doc, *keys)
    if value is None:
        raise InvalidRecord(kind, _record_id(doc), f"'{keys[0]}' is required")
    return value


def _scope(kind: str, doc: dict) -> Tuple[str, Optional[str], Tuple[str, ...]]:
    scope = _pick(doc, "scope", default="all")
    if scope not in SCOPES:
        raise InvalidRecord(kind, _record_id(doc), f"unknown scope {scope!r}")

    category_id = _pick(doc, "category_id", "category")
    product_ids = tuple(str(p) for p in _pick(doc, "product_ids", "products", default=()))
    if scope == SCOPE_CATEGORY and not category_id:
        raise InvalidRecord(kind, _record_id(doc), "category scope needs a category")
    if scope == SCOPE_PRODUCTS and not product_ids:
        raise InvalidRecord(kind, _record_id(doc), "products scope needs products")
    return scope, (str(category_id) if category_id else None), product_ids


# ============ Конструкторы записей ============


def product_from_doc(doc: dict) -> Product:
    kind = "Product"
    price = _money(kind, doc, _required(kind, doc, "price"), "price")
    if price <= 0:
        raise InvalidRecord(kind, _record_id(doc), "price must be positive")

    raw_offer = _pick(doc, "offer_price", "offerPrice")
    offer_price = None if raw_offer is None else _money(kind, doc, raw_offer, "offerPrice")
    if offer_price is not None and not 0 < offer_price <= price:
        raise InvalidRecord(kind, _record_id(doc), "offerPrice must be in (0, price]")

    return Product(
        id=_record_id(doc),
        name=str(_required(kind, doc, "name")),
        price=price,
        category_id=str(_required(kind, doc, "category_id", "category")),
        offer_price=offer_price,
        in_stock=bool(_pick(doc, "in_stock", "inStock", default=True)),
        is_best_seller=bool(_pick(doc, "is_best_seller", "isBestSeller", default=False)),
    )


def offer_from_doc(doc: dict) -> Offer:
    kind = "Offer"
    percentage = _required(kind, doc, "percentage")
    if not isinstance(percentage, int) or isinstance(percentage, bool):
        raise InvalidRecord(kind, _record_id(doc), "percentage must be an integer")
    if not 1 <= percentage <= 90:
        raise InvalidRecord(kind, _record_id(doc), "percentage must be in [1, 90]")

    scope, category_id, product_ids = _scope(kind, doc)
    return Offer(
        id=_record_id(doc),
        name=str(_pick(doc, "name", default="")),
        percentage=percentage,
        scope=scope,
        category_id=category_id,
        product_ids=product_ids,
        is_active=bool(_pick(doc, "is_active", "isActive", default=True)),
        created_at=_ts(kind, doc, _pick(doc, "created_at", "createdAt")),
        starts_at=_ts(kind, doc, _pick(doc, "starts_at", "startDate")),
        ends_at=_ts(kind, doc, _pick(doc, "ends_at", "endDate")),
    )


def coupon_from_doc(doc: dict) -> Coupon:
    kind = "Coupon"
    code = normalize_code(str(_required(kind, doc, "code")))
    discount_type = _required(kind, doc, "discount_type", "type")
    if discount_type not in DISCOUNT_TYPES:
        raise InvalidRecord(kind, _record_id(doc), f"unknown type {discount_type!r}")

    value = _money(kind, doc, _required(kind, doc, "value"), "value")
    if value < 0 or (discount_type == PERCENTAGE and not 0 < value <= 100):
        raise InvalidRecord(kind, _record_id(doc), f"bad {discount_type} value {value}")

    # usageLimit 0 в документах магазина означает «без лимита»
    usage_limit = _pick(doc, "usage_limit", "usageLimit") or None
    usage_count = int(_pick(doc, "usage_count", "usedCount", default=0))
    if usage_limit is not None and usage_count > int(usage_limit):
        raise InvalidRecord(kind, _record_id(doc), "usage count exceeds usage limit")

    max_discount = _pick(doc, "max_discount", "maxDiscount")
    scope, category_id, product_ids = _scope(kind, doc)
    return Coupon(
        id=str(_pick(doc, "id", "_id", default=code)),
        code=code,
        discount_type=discount_type,
        value=value,
        expires_at=_ts(kind, doc, _pick(doc, "expires_at", "endDate")),
        usage_limit=None if usage_limit is None else int(usage_limit),
        usage_count=usage_count,
        is_active=bool(_pick(doc, "is_active", "isActive", default=True)),
        starts_at=_ts(kind, doc, _pick(doc, "starts_at", "startDate")),
        min_order_amount=_money(
            kind, doc, _pick(doc, "min_order_amount", "minOrderAmount", default=0), "minOrderAmount"
        ),
        max_discount=None if max_discount is None else _money(kind, doc, max_discount, "maxDiscount"),
        scope=scope,
        category_id=category_id,
        product_ids=product_ids,
    )


def currency_from_doc(doc: dict) -> Currency:
    kind = "Currency"
    rate = _money(kind, doc, _pick(doc, "exchange_rate", "exchangeRate", default=1), "exchangeRate")
    if rate <= 0:
        raise InvalidRecord(kind, _record_id(doc), "exchange rate must be positive")
    return Currency(
        code=str(_required(kind, doc, "code")).upper(),
        symbol=str(_required(kind, doc, "symbol")),
        exchange_rate=rate,
        is_active=bool(_pick(doc, "is_active", "isActive", default=False)),
    )


def load_seed(
    path: str,
) -> Tuple[Tuple[Product, ...], Tuple[Offer, ...], Tuple[Coupon, ...], Tuple[Currency, ...]]:
    """Загружает seed.json и возвращает кортежи проверенных записей"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    products = tuple(map(product_from_doc, data.get("products", [])))
    offers = tuple(map(offer_from_doc, data.get("offers", [])))
    coupons = tuple(map(coupon_from_doc, data.get("coupons", [])))
    currencies = tuple(map(currency_from_doc, data.get("currencies", [])))
    logger.info(
        "loaded %d products, %d offers, %d coupons from %s",
        len(products), len(offers), len(coupons), path,
    )
    return products, offers, coupons, currencies


# ============ Хранилище ============


class CouponStore:
    """
    Купоны в памяти. redeem — атомарный «увеличить usage_count,
    только если он меньше usage_limit».
    """

    def __init__(self, coupons: Tuple[Coupon, ...] = ()):
        self._lock = threading.Lock()
        self._coupons: Dict[str, Coupon] = {c.code: c for c in coupons}

    def all(self) -> Tuple[Coupon, ...]:
        with self._lock:
            return tuple(self._coupons.values())

    def find(self, code: str) -> Maybe[Coupon]:
        return find_coupon(self.all(), code)

    def redeem(self, code: str) -> Either[Exception, Coupon]:
        """Погашение купона после оформления заказа, ровно один раз на заказ"""
        key = normalize_code(code)
        with self._lock:
            coupon = self._coupons.get(key)
            if coupon is None:
                return Either.left(CouponNotFound(key))
            if is_exhausted(coupon):
                logger.warning("coupon %s exhausted at commit", key)
                return Either.left(CouponExhausted(key))
            redeemed = replace(coupon, usage_count=coupon.usage_count + 1)
            self._coupons[key] = redeemed
        return Either.right(redeemed)


class CatalogStore:
    """Товары, акции и валюты в памяти; акции можно переключать"""

    def __init__(
        self,
        products: Tuple[Product, ...],
        offers: Tuple[Offer, ...] = (),
        currencies: Tuple[Currency, ...] = (),
    ):
        self._lock = threading.Lock()
        self.products = products
        self.currencies = currencies
        self._offers = offers

    def offers(self) -> Tuple[Offer, ...]:
        with self._lock:
            return self._offers

    def product(self, product_id: str) -> Maybe[Product]:
        return Maybe.first(self.products, lambda p: p.id == product_id)

    def active_currencies(self) -> Tuple[Currency, ...]:
        """Валюты, включённые администратором для отображения цен"""
        return tuple(c for c in self.currencies if c.is_active)

    def currency(self, code: str) -> Maybe[Currency]:
        return Maybe.first(self.currencies, lambda c: c.code == (code or "").upper())

    def toggle_offer(self, offer_id: str) -> Maybe[Offer]:
        with self._lock:
            found = Maybe.first(self._offers, lambda o: o.id == offer_id)
            if found.is_none():
                return found
            toggled = replace(found.value, is_active=not found.value.is_active)
            self._offers = tuple(toggled if o.id == offer_id else o for o in self._offers)
        logger.info("offer %s is_active=%s", offer_id, toggled.is_active)
        return Maybe.some(toggled)
