import sys
import os
from datetime import datetime, timezone

import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pricing.config import load_settings
from pricing.domain import CartLine
from pricing.money import format_price
from pricing.offers import best_offer
from pricing.service import PricingService
from pricing.store import CatalogStore, CouponStore, load_seed
from pricing.async_ops import run_catalog_prices

settings = load_settings()


# ============ Данные и сервис ============
@st.cache_resource
def get_service() -> PricingService:
    products, offers, coupons, currencies = load_seed(settings.seed_path)
    return PricingService(
        CatalogStore(products, offers, currencies),
        CouponStore(coupons),
        page_size=settings.page_size,
    )


st.set_page_config(
    page_title="Storefront Pricing",
    page_icon="🏷️",
    layout="wide",
    initial_sidebar_state="expanded",
)

service = get_service()
catalog = service.catalog

if "cart" not in st.session_state:
    st.session_state.cart = {}  # product_id -> qty
if "coupon_code" not in st.session_state:
    st.session_state.coupon_code = ""


def cart_lines() -> tuple:
    return tuple(CartLine(pid, qty) for pid, qty in st.session_state.cart.items())


# ============ SIDEBAR ============
with st.sidebar:
    st.header("📂 Навигация")
    page = st.radio(
        "Раздел:",
        ["🏪 Каталог", "🛒 Корзина", "🎯 Акции (admin)"],
        label_visibility="collapsed",
    )

    st.divider()
    # Валюта отображения передаётся явно во все вызовы format_price
    codes = [c.code for c in catalog.active_currencies()] or [settings.default_currency]
    default_idx = codes.index(settings.default_currency) if settings.default_currency in codes else 0
    currency_code = st.selectbox("💱 Валюта", codes, index=default_idx)
    currency = catalog.currency(currency_code).get_or_else(None)

    def money(amount) -> str:
        return format_price(amount, currency) if currency else f"{amount:,.2f}"


now = datetime.now(timezone.utc).replace(tzinfo=None)


# ============ PAGE: КАТАЛОГ ============
if page == "🏪 Каталог":
    st.header("🏪 Каталог")

    col1, col2 = st.columns(2)
    with col1:
        only_best = st.checkbox("⭐ Только бестселлеры")
    with col2:
        page_num = st.number_input("Страница", min_value=1, value=1)

    listing = service.list_products(
        page=page_num, predicate=(lambda p: p.is_best_seller) if only_best else None
    )
    st.caption(
        f"Страница {listing.page} из {max(listing.total_pages, 1)} · товаров: {listing.total_items}"
    )

    prices = run_catalog_prices(list(listing.items), list(catalog.offers()), now)

    for product, row in zip(listing.items, prices):
        with st.container():
            cols = st.columns([5, 3, 2, 2])
            with cols[0]:
                st.markdown(f"**{product.name}**")
                if not product.in_stock:
                    st.caption("нет в наличии")
            with cols[1]:
                if row["on_sale"]:
                    st.markdown(f"~~{money(row['price'])}~~ **{money(row['unit_price'])}**")
                    offer = best_offer(product, catalog.offers(), now)
                    if offer.is_some():
                        st.caption(f"🏷️ {offer.value.name}: −{offer.value.percentage}%")
                else:
                    st.write(money(row["price"]))
            with cols[2]:
                qty = st.number_input(
                    "Кол-во",
                    min_value=1,
                    value=1,
                    key=f"qty_{product.id}",
                    label_visibility="collapsed",
                )
            with cols[3]:
                if st.button("➕ В корзину", key=f"add_{product.id}", disabled=not product.in_stock):
                    cart = dict(st.session_state.cart)
                    cart[product.id] = cart.get(product.id, 0) + qty
                    st.session_state.cart = cart
                    st.success(f"✅ {product.name} × {qty}")
            st.divider()


# ============ PAGE: КОРЗИНА ============
elif page == "🛒 Корзина":
    st.header("🛒 Корзина")

    if not st.session_state.cart:
        st.info("🛍️ Корзина пуста")
    else:
        st.session_state.coupon_code = st.text_input(
            "🎟️ Купон", value=st.session_state.coupon_code
        )

        result = service.preview(cart_lines(), st.session_state.coupon_code, now)
        if result.is_left:
            st.error(f"❌ {result.value.get('error')}")
        else:
            order = result.value
            for q in order.lines:
                name = catalog.product(q.product_id).map(lambda p: p.name).get_or_else(q.product_id)
                cols = st.columns([5, 2, 3, 1])
                with cols[0]:
                    st.write(f"**{name}**")
                with cols[1]:
                    st.write(f"× {q.quantity}")
                with cols[2]:
                    st.write(money(q.line_total))
                with cols[3]:
                    if st.button("🗑️", key=f"remove_{q.product_id}"):
                        st.session_state.cart = {
                            pid: n for pid, n in st.session_state.cart.items() if pid != q.product_id
                        }
                        st.rerun()

            st.divider()
            st.write(f"Подытог: {money(order.subtotal)}")
            if order.coupon is not None:
                if order.coupon.valid:
                    st.success(f"Скидка по купону {order.coupon.code}: −{money(order.discount)}")
                else:
                    st.warning(f"Купон не применён: {order.coupon.reason}")
            st.markdown(f"### 💰 Итого: **{money(order.total)}**")

            if st.button("✅ Оформить заказ", type="primary", use_container_width=True):
                placed = service.place_order(cart_lines(), st.session_state.coupon_code, now)
                if placed.is_right:
                    st.success(f"🎉 Заказ оформлен! Сумма: {money(placed.value.total)}")
                    st.session_state.cart = {}
                    st.session_state.coupon_code = ""
                else:
                    st.error(f"❌ {placed.value.get('error')}")


# ============ PAGE: АКЦИИ ============
elif page == "🎯 Акции (admin)":
    st.header("🎯 Управление акциями")

    for offer in catalog.offers():
        cols = st.columns([4, 2, 3, 2])
        with cols[0]:
            st.markdown(f"**{offer.name}**")
        with cols[1]:
            st.write(f"−{offer.percentage}%")
        with cols[2]:
            target = offer.category_id or ", ".join(offer.product_ids) or "все товары"
            st.caption(f"{offer.scope}: {target}")
        with cols[3]:
            label = "⏸️ Выключить" if offer.is_active else "▶️ Включить"
            if st.button(label, key=f"toggle_{offer.id}"):
                service.toggle_offer(offer.id)
                st.rerun()
