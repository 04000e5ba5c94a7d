from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import func, select

from checkout.data.models.cart import CartModel
from checkout.data.models.user import UserModel
from checkout.domain.errors import (
    CartEmpty,
    CartItemNotFound,
    InsufficientStock,
    ProductNotFound,
    PromoInvalid,
    PromoUsageLimitExceeded,
    UserNotFound,
    ValidationError,
)
from checkout.domain.schemas import PromoCodeCreate
from checkout.utils.settings import ANONYMOUS_USER_ID


@pytest.fixture
def save10(promo_service):
    return promo_service.create_promo_code(
        PromoCodeCreate(code="SAVE10", discount_percentage=Decimal("10"))
    )


def _cart_count(db):
    return db.execute(select(func.count(CartModel.id))).scalar_one()


def test_scenario_cart_with_promo(cart_service, users, save10):
    cart_service.add_item(1, product_id=1, quantity=2)
    view = cart_service.add_item(1, product_id=2, quantity=1)

    assert view["sub_total"] == Decimal("25.00")
    assert view["total_quantity"] == 3

    view = cart_service.apply_promo_code(1, "save10")

    assert view["applied_promo_code"] == "SAVE10"
    assert view["promo_code_discount_percentage"] == Decimal("10")
    assert view["promo_code_discount_amount"] == Decimal("2.50")
    assert view["final_amount"] == Decimal("22.50")


def test_get_cart_creates_empty_cart_for_user(db, cart_service, users):
    view = cart_service.get_cart(1)

    assert view["cart_id"] is not None
    assert view["user_id"] == 1
    assert view["items"] == []
    assert view["final_amount"] == Decimal("0.00")
    assert _cart_count(db) == 1


def test_unknown_user(cart_service, users):
    with pytest.raises(UserNotFound):
        cart_service.add_item(999, product_id=1, quantity=1)


def test_adding_same_product_merges_and_refreshes_price(cart_service, products, users):
    cart_service.add_item(1, product_id=1, quantity=1)
    products.put(1, "12.00", stock=10)

    view = cart_service.add_item(1, product_id=1, quantity=2)

    assert len(view["items"]) == 1
    line = view["items"][0]
    assert line["quantity"] == 3
    assert line["unit_price"] == Decimal("12.00")
    assert view["sub_total"] == Decimal("36.00")


def test_update_quantity_keeps_stored_price(cart_service, products, users):
    view = cart_service.add_item(1, product_id=1, quantity=1)
    item_id = view["items"][0]["id"]
    products.put(1, "12.00", stock=10)

    view = cart_service.update_item(1, item_id, 4)

    line = view["items"][0]
    assert line["quantity"] == 4
    assert line["unit_price"] == Decimal("10.00")
    # rabat liczony od aktualnej ceny katalogowej
    assert line["original_price"] == Decimal("12.00")
    assert line["discount"] == Decimal("8.00")


def test_discounted_price_is_used(cart_service, products, users):
    products.put(3, "20.00", discounted_price="15.00", stock=5)

    view = cart_service.add_item(1, product_id=3, quantity=2)

    line = view["items"][0]
    assert line["unit_price"] == Decimal("15.00")
    assert line["discount"] == Decimal("10.00")
    assert view["total_price_before_discount"] == Decimal("40.00")
    assert view["total_discount"] == Decimal("10.00")
    assert view["sub_total"] == Decimal("30.00")


def test_add_more_than_stock(cart_service, users):
    with pytest.raises(InsufficientStock) as exc:
        cart_service.add_item(1, product_id=1, quantity=11)
    assert exc.value.available == 10


def test_merge_over_stock(cart_service, users):
    cart_service.add_item(1, product_id=1, quantity=6)

    with pytest.raises(InsufficientStock) as exc:
        cart_service.add_item(1, product_id=1, quantity=5)

    assert exc.value.in_cart == 6
    assert cart_service.get_cart(1)["items"][0]["quantity"] == 6


@pytest.mark.parametrize("product_id", [99, 4])
def test_missing_or_inactive_product(cart_service, products, users, product_id):
    products.put(4, "7.00", is_active=False)

    with pytest.raises(ProductNotFound):
        cart_service.add_item(1, product_id=product_id, quantity=1)


def test_non_positive_quantity(cart_service, users):
    with pytest.raises(ValidationError):
        cart_service.add_item(1, product_id=1, quantity=0)


@pytest.mark.parametrize("quantity", [0, -3])
def test_update_to_zero_removes_line(cart_service, users, quantity):
    cart_service.add_item(1, product_id=1, quantity=2)
    view = cart_service.add_item(1, product_id=2, quantity=1)
    item_id = view["items"][0]["id"]

    view = cart_service.update_item(1, item_id, quantity)

    assert [line["product_id"] for line in view["items"]] == [2]


def test_update_over_stock(cart_service, users):
    view = cart_service.add_item(1, product_id=1, quantity=1)

    with pytest.raises(InsufficientStock):
        cart_service.update_item(1, view["items"][0]["id"], 50)


def test_remove_item(cart_service, users):
    view = cart_service.add_item(1, product_id=1, quantity=1)

    view = cart_service.remove_item(1, view["items"][0]["id"])

    assert view["items"] == []
    with pytest.raises(CartItemNotFound):
        cart_service.remove_item(1, 12345)


def test_item_of_other_user_is_not_found(cart_service, users):
    view = cart_service.add_item(1, product_id=1, quantity=1)

    with pytest.raises(CartItemNotFound):
        cart_service.update_item(2, view["items"][0]["id"], 3)


def test_clear_is_idempotent(db, cart_service, users, save10):
    cart_service.add_item(1, product_id=1, quantity=1)
    cart_service.apply_promo_code(1, "SAVE10")

    assert cart_service.clear(1) is True
    assert cart_service.clear(1) is True

    view = cart_service.get_cart(1)
    assert view["items"] == []
    # zwykle czyszczenie zostawia kod
    assert view["applied_promo_code"] == "SAVE10"


def test_clear_without_cart_creates_nothing(db, cart_service, users):
    assert cart_service.clear(2) is True
    assert cart_service.clear(None) is True
    assert _cart_count(db) == 0


def test_anonymous_read_creates_nothing(db, cart_service):
    view = cart_service.get_cart(None)

    assert view["cart_id"] is None
    assert view["items"] == []
    assert _cart_count(db) == 0
    assert db.get(UserModel, ANONYMOUS_USER_ID) is None


def test_anonymous_callers_share_one_cart(db, cart_service):
    cart_service.add_item(None, product_id=1, quantity=1)
    view = cart_service.add_item(None, product_id=2, quantity=1)

    assert view["user_id"] == ANONYMOUS_USER_ID
    assert len(view["items"]) == 2
    assert cart_service.get_cart(None)["cart_id"] == view["cart_id"]
    assert _cart_count(db) == 1


def test_exhausted_promo_is_rejected(cart_service, promo_service, users):
    promo_service.create_promo_code(
        PromoCodeCreate(code="LIMITED", discount_percentage=Decimal("20"), usage_limit=3)
    )
    promo = promo_service.validate("LIMITED")
    for _ in range(3):
        promo_service.record_usage(promo, user_id=None, discount_amount=Decimal("1.00"), order_total=Decimal("5.00"))

    cart_service.add_item(1, product_id=1, quantity=1)
    with pytest.raises(PromoUsageLimitExceeded) as exc:
        cart_service.apply_promo_code(1, "LIMITED")

    assert isinstance(exc.value, PromoInvalid)
    view = cart_service.get_cart(1)
    assert view["applied_promo_code"] is None
    assert view["final_amount"] == Decimal("10.00")


def test_unknown_promo_leaves_cart_unchanged(cart_service, users, save10):
    cart_service.add_item(1, product_id=1, quantity=1)
    cart_service.apply_promo_code(1, "SAVE10")

    with pytest.raises(PromoInvalid):
        cart_service.apply_promo_code(1, "NOPE")

    assert cart_service.get_cart(1)["applied_promo_code"] == "SAVE10"


def test_remove_promo_is_idempotent(cart_service, users, save10):
    cart_service.add_item(1, product_id=1, quantity=2)
    cart_service.apply_promo_code(1, "SAVE10")

    view = cart_service.remove_promo_code(1)
    view = cart_service.remove_promo_code(1)

    assert view["applied_promo_code"] is None
    assert view["promo_code_discount_amount"] == Decimal("0.00")
    assert view["final_amount"] == Decimal("20.00")


def test_deleted_product_is_skipped_in_view(cart_service, products, users):
    cart_service.add_item(1, product_id=1, quantity=1)
    cart_service.add_item(1, product_id=2, quantity=2)
    products.remove(2)

    view = cart_service.get_cart(1)

    assert [line["product_id"] for line in view["items"]] == [1]
    assert view["sub_total"] == Decimal("10.00")


def test_count_items(cart_service, products, users):
    assert cart_service.count_items(1) == 0

    cart_service.add_item(1, product_id=1, quantity=2)
    cart_service.add_item(1, product_id=2, quantity=3)
    assert cart_service.count_items(1) == 5

    products.put(2, "5.00", is_active=False)
    assert cart_service.count_items(1) == 2


def test_version_grows_with_each_change(db, cart_service, users):
    view = cart_service.add_item(1, product_id=1, quantity=1)
    cart = db.get(CartModel, view["cart_id"])
    before = cart.version

    cart_service.add_item(1, product_id=2, quantity=1)
    db.refresh(cart)

    assert cart.version == before + 1


def test_line_total_is_rounded_to_cents():
    from checkout.data.models.cart_item import CartItemModel

    assert CartItemModel(unit_price=Decimal("2.50"), quantity=3).total_price == Decimal("7.50")
    assert CartItemModel(unit_price=Decimal("0.10"), quantity=7).total_price == Decimal("0.70")


def _message_of(link):
    return parse_qs(urlparse(link["whatsapp_url"]).query)["text"][0]


def test_whatsapp_order_from_cart(cart_service, users, save10):
    cart_service.add_item(1, product_id=1, quantity=2)
    cart_service.add_item(1, product_id=2, quantity=1)
    cart_service.apply_promo_code(1, "SAVE10")

    link = cart_service.whatsapp_order(1, "+994 50 111 22 33", "Alice", "+48 600 100 200")

    assert link["whatsapp_url"].startswith("https://wa.me/994501112233?text=")
    assert _message_of(link) == link["message"]
    assert "Name: Alice" in link["message"]
    assert "  Total: 20.00 AZN" in link["message"]
    # suma po rabacie z kodu
    assert "*22.50 AZN*" in link["message"]
    # koszyk bez zmian
    assert cart_service.count_items(1) == 3


def test_whatsapp_order_with_empty_cart(cart_service, users):
    with pytest.raises(CartEmpty):
        cart_service.whatsapp_order(1, "0501112233", "Alice", "600")
    with pytest.raises(CartEmpty):
        cart_service.whatsapp_order(None, "0501112233", "Anon", "600")


def test_quick_whatsapp_order_uses_discounted_price(db, cart_service, products):
    products.put(3, "20.00", discounted_price="15.00", stock=5, name="Lamp")

    link = cart_service.quick_whatsapp_order(3, 2, "0501112233", "Bob", "700")

    assert link["whatsapp_url"].startswith("https://wa.me/994501112233?text=")
    assert "- *Lamp*" in link["message"]
    assert "  Price: 15.00 AZN" in link["message"]
    assert "*30.00 AZN*" in link["message"]
    assert _cart_count(db) == 0


@pytest.mark.parametrize(
    "product_id, quantity, error",
    [(99, 1, ProductNotFound), (4, 1, ProductNotFound), (1, 0, ValidationError), (1, 11, InsufficientStock)],
)
def test_quick_whatsapp_order_rejected(cart_service, products, product_id, quantity, error):
    products.put(4, "7.00", is_active=False)

    with pytest.raises(error):
        cart_service.quick_whatsapp_order(product_id, quantity, "0501112233", "Bob", "700")
