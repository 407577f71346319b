import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from pricing.domain import Offer, Product
from pricing.offers import best_offer, iter_applicable_offers, resolve_offer_percentage

NOW = datetime(2025, 11, 25, 12, 0, 0)


@pytest.fixture
def product():
    return Product(id="p1", name="Scarf", price=Decimal("450"), category_id="c-acc")


def test_no_offers_gives_zero(product):
    assert resolve_offer_percentage(product, (), NOW) == 0


def test_max_offer_wins_not_sum(product):
    offers = (
        Offer(id="o1", name="Category", percentage=10, scope="category", category_id="c-acc"),
        Offer(id="o2", name="Global", percentage=20, scope="all"),
    )
    assert resolve_offer_percentage(product, offers, NOW) == 20


def test_inactive_offers_are_ignored(product):
    offers = (
        Offer(id="o1", name="Off", percentage=50, scope="all", is_active=False),
        Offer(id="o2", name="On", percentage=5, scope="all"),
    )
    assert resolve_offer_percentage(product, offers, NOW) == 5


def test_other_category_does_not_apply(product):
    offers = (Offer(id="o1", name="Clothes", percentage=30, scope="category", category_id="c-clothes"),)
    assert resolve_offer_percentage(product, offers, NOW) == 0


def test_products_scope(product):
    offers = (
        Offer(id="o1", name="Picked", percentage=25, scope="products", product_ids=("p1",)),
        Offer(id="o2", name="Others", percentage=40, scope="products", product_ids=("p9",)),
    )
    assert resolve_offer_percentage(product, offers, NOW) == 25


def test_offer_window(product):
    offers = (
        Offer(id="o1", name="Later", percentage=30, scope="all", starts_at=NOW + timedelta(days=1)),
        Offer(id="o2", name="Over", percentage=40, scope="all", ends_at=NOW - timedelta(seconds=1)),
        Offer(id="o3", name="Now", percentage=15, scope="all", starts_at=NOW, ends_at=NOW + timedelta(days=3)),
    )
    assert [o.id for o in iter_applicable_offers(product, offers, NOW)] == ["o3"]
    assert resolve_offer_percentage(product, offers, NOW) == 15


def test_best_offer_returns_winner(product):
    offers = (
        Offer(id="o1", name="A", percentage=10, scope="all"),
        Offer(id="o2", name="B", percentage=10, scope="category", category_id="c-acc"),
    )
    winner = best_offer(product, offers, NOW)
    assert winner.is_some()
    assert winner.get_or_else(None).id == "o1"
    assert best_offer(product, (), NOW).is_none()


def test_iter_applicable_offers_is_lazy(product):
    gen = iter_applicable_offers(product, (), NOW)
    assert hasattr(gen, "__next__")
