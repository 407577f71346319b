import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal

import pytest
from pricing.domain import Coupon, Offer, Product
from pricing.errors import CouponExhausted, CouponNotFound, InvalidRecord
from pricing.store import (
    CatalogStore,
    CouponStore,
    coupon_from_doc,
    load_seed,
    offer_from_doc,
    product_from_doc,
)

SEED = os.path.join(os.path.dirname(__file__), "..", "data", "seed.json")


def test_load_bundled_seed():
    products, offers, coupons, currencies = load_seed(SEED)
    assert len(products) == 6
    assert len(offers) == 3
    assert {c.code for c in coupons} == {"SAVE15", "MINUS500", "SUMMER", "BAGS50"}
    assert {c.code for c in currencies} == {"JOD", "USD", "EUR"}


def test_load_seed_from_tmp(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(
        json.dumps(
            {
                "products": [{"_id": "p1", "name": "A", "price": 10.5, "category": "c1"}],
                "offers": [{"_id": "o1", "name": "All", "percentage": 5, "scope": "all", "endDate": "2030-01-01T00:00:00"}],
            }
        ),
        encoding="utf-8",
    )
    products, offers, coupons, currencies = load_seed(str(path))
    assert products[0].price == Decimal("10.5")
    assert offers[0].ends_at == datetime(2030, 1, 1)
    assert coupons == () and currencies == ()


def test_product_camel_case_fields():
    p = product_from_doc(
        {"id": "p1", "name": "A", "price": 2500, "offerPrice": 2200, "category": "c1", "isBestSeller": True, "inStock": False}
    )
    assert p.offer_price == Decimal("2200")
    assert p.is_best_seller and not p.in_stock


@pytest.mark.parametrize(
    "doc",
    [
        {"id": "p1", "name": "A", "price": 100, "offerPrice": 150, "category": "c"},
        {"id": "p2", "name": "A", "price": 0, "category": "c"},
        {"id": "p3", "name": "A", "price": "abc", "category": "c"},
        {"id": "p4", "price": 100, "category": "c"},
    ],
)
def test_malformed_products_rejected(doc):
    with pytest.raises(InvalidRecord):
        product_from_doc(doc)


@pytest.mark.parametrize(
    "doc",
    [
        {"id": "o1", "percentage": 95, "scope": "all"},
        {"id": "o2", "percentage": 0, "scope": "all"},
        {"id": "o3", "percentage": 10, "scope": "weekend"},
        {"id": "o4", "percentage": 10, "scope": "category"},
        {"id": "o5", "percentage": 10, "scope": "products", "products": []},
        {"id": "o6", "percentage": 12.5, "scope": "all"},
    ],
)
def test_malformed_offers_rejected(doc):
    with pytest.raises(InvalidRecord):
        offer_from_doc(doc)


def test_coupon_code_upper_cased():
    c = coupon_from_doc({"id": "k1", "code": " save15 ", "type": "percentage", "value": 15})
    assert c.code == "SAVE15"
    assert c.usage_limit is None and c.usage_count == 0


@pytest.mark.parametrize(
    "doc",
    [
        {"code": "A", "type": "bogo", "value": 1},
        {"code": "B", "type": "percentage", "value": 120},
        {"code": "C", "type": "fixed", "value": -1},
        {"code": "D", "type": "fixed", "value": 5, "usageLimit": 2, "usedCount": 3},
        {"type": "fixed", "value": 5},
    ],
)
def test_malformed_coupons_rejected(doc):
    with pytest.raises(InvalidRecord):
        coupon_from_doc(doc)


# ============ CouponStore ============


def test_redeem_increments_once():
    store = CouponStore((Coupon(id="k", code="ONE", discount_type="fixed", value=Decimal("5"), usage_limit=1),))
    first = store.redeem("one")
    second = store.redeem("ONE")

    assert first.is_right
    assert first.value.usage_count == 1
    assert second.is_left
    assert isinstance(second.value, CouponExhausted)
    assert store.find("one").get_or_else(None).usage_count == 1


def test_redeem_unknown():
    assert isinstance(CouponStore().redeem("x").value, CouponNotFound)


def test_concurrent_redeem_respects_limit():
    store = CouponStore((Coupon(id="k", code="TEN", discount_type="fixed", value=Decimal("5"), usage_limit=10),))
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: store.redeem("TEN"), range(50)))

    assert sum(1 for r in results if r.is_right) == 10
    assert store.find("TEN").get_or_else(None).usage_count == 10


# ============ CatalogStore ============


def test_toggle_offer():
    catalog = CatalogStore(
        (Product(id="p1", name="A", price=Decimal("1"), category_id="c"),),
        (Offer(id="o1", name="All", percentage=10, scope="all"),),
    )
    toggled = catalog.toggle_offer("o1")
    assert toggled.get_or_else(None).is_active is False
    assert catalog.offers()[0].is_active is False
    assert catalog.toggle_offer("missing").is_none()


def test_active_currencies_only():
    products, offers, coupons, currencies = load_seed(SEED)
    catalog = CatalogStore(products, offers, currencies)
    assert [c.code for c in catalog.active_currencies()] == ["JOD", "USD"]
    assert catalog.currency("eur").is_some()


def test_zero_usage_limit_means_unlimited():
    c = coupon_from_doc({"id": "k1", "code": "FREE", "type": "fixed", "value": 5, "usageLimit": 0, "usedCount": 7})
    assert c.usage_limit is None
    assert CouponStore((c,)).redeem("FREE").is_right
