from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

# Области действия акций и купонов
SCOPE_ALL = "all"
SCOPE_CATEGORY = "category"
SCOPE_PRODUCTS = "products"
SCOPES = (SCOPE_ALL, SCOPE_CATEGORY, SCOPE_PRODUCTS)

# Типы скидки купона
PERCENTAGE = "percentage"
FIXED = "fixed"
DISCOUNT_TYPES = (PERCENTAGE, FIXED)


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: Decimal  # базовая валюта, 2 знака
    category_id: str
    offer_price: Optional[Decimal] = None
    in_stock: bool = True
    is_best_seller: bool = False


@dataclass(frozen=True)
class Offer:
    id: str
    name: str
    percentage: int  # 1..90
    scope: str  # "all" | "category" | "products"
    category_id: Optional[str] = None
    product_ids: Tuple[str, ...] = ()
    is_active: bool = True
    created_at: Optional[datetime] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


@dataclass(frozen=True)
class Coupon:
    id: str
    code: str  # всегда upper-case
    discount_type: str  # "percentage" | "fixed"
    value: Decimal
    expires_at: Optional[datetime] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    is_active: bool = True
    starts_at: Optional[datetime] = None
    min_order_amount: Decimal = Decimal("0")
    max_discount: Optional[Decimal] = None
    scope: str = SCOPE_ALL
    category_id: Optional[str] = None
    product_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    exchange_rate: Decimal = Decimal("1")
    is_active: bool = False


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class LineQuote:
    """Цена одной позиции после разрешения акций"""

    product_id: str
    category_id: str
    base_price: Decimal
    offer_percentage: int
    unit_price: Decimal
    quantity: int
    line_total: Decimal


@dataclass(frozen=True)
class CouponCheck:
    """Результат проверки купона: reason — код ошибки или None"""

    code: str
    valid: bool
    discount_amount: Decimal
    reason: Optional[str] = None


@dataclass(frozen=True)
class OrderTotal:
    lines: Tuple[LineQuote, ...]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    coupon: Optional[CouponCheck] = None


@dataclass(frozen=True)
class Page:
    items: Tuple[Product, ...]
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool
