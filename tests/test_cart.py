from storefront.models.cart import Cart
from storefront.services.cart_service import (
    build_cart_key,
    merge_item,
    recalculate_total,
    update_item_quantity,
)


def single(**overrides):
    item = {
        "product_id": 1,
        "product_name": "Linen Shirt",
        "brand": "Brava",
        "size": "M",
        "color": "White",
        "quantity": 2,
        "unit_price": 12.5,
        "total_price": 25.0,
    }
    item.update(overrides)
    return item


def pack(**overrides):
    item = {
        "product_id": 1,
        "product_name": "Linen Shirt",
        "brand": "Brava",
        "is_pack": True,
        "pack_multiplier": 1,
        "has_discount": False,
        "item_count": 6,
        "quantity": 1,
        "total_price": 60.0,
    }
    item.update(overrides)
    return item


# -------------------------
# MERGE KEYS
# -------------------------

def test_single_key_uses_size_and_colour():
    assert build_cart_key(single()) == "single::Linen Shirt::size=M::color=White"


def test_pack_key_uses_multiplier_and_discount_flag():
    assert build_cart_key(pack(has_discount=True)) == "pack::Linen Shirt::multiplier=1::discount=true"
    assert build_cart_key(pack()) != build_cart_key(pack(has_discount=True))


def test_same_variant_is_merged():
    cart = Cart(user_id=1)

    merge_item(cart, single())
    merge_item(cart, single(quantity=3, total_price=37.5))

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5
    assert cart.items[0].total_price == 62.5


def test_different_colour_is_a_new_line():
    cart = Cart(user_id=1)

    merge_item(cart, single())
    merge_item(cart, single(color="Black"))

    assert len(cart.items) == 2


def test_pack_merge_adds_multiplier():
    cart = Cart(user_id=1)

    merge_item(cart, pack())
    merge_item(cart, pack())

    assert len(cart.items) == 1
    assert cart.items[0].pack_multiplier == 2
    assert cart.items[0].total_price == 120.0


def test_total_is_sum_of_lines():
    cart = Cart(user_id=1)
    merge_item(cart, single())
    merge_item(cart, single(color="Black", total_price=12.5, quantity=1))

    assert recalculate_total(cart) == 37.5


def test_update_quantity_keeps_unit_price():
    cart = Cart(user_id=1)
    line = merge_item(cart, single())

    assert update_item_quantity(cart, line.line_id, 6) is True
    assert line.total_price == 75.0


def test_update_to_zero_removes_line():
    cart = Cart(user_id=1)
    line = merge_item(cart, single())

    update_item_quantity(cart, line.line_id, 0)

    assert cart.items == []


def test_update_unknown_line():
    assert update_item_quantity(Cart(user_id=1), "nope", 3) is False


# -------------------------
# API
# -------------------------

def test_get_cart_creates_empty_cart(client, user_headers):
    res = client.get("/cart/", headers=user_headers)

    assert res.status_code == 200
    assert res.json()["cart"]["items"] == []
    assert res.json()["cart"]["total_amount"] == 0


def test_bulk_add_prices_from_catalog(client, user_headers, product):
    payload = {
        "product_id": product.id,
        "variations": [
            {"size": "S", "color": "White", "quantity": 2},
            {"size": "M", "color": "White", "quantity": 3},
            {"size": "L", "color": "White", "quantity": 0},
        ],
    }

    res = client.post("/cart/add", json=payload, headers=user_headers)

    assert res.status_code == 200
    cart = res.json()["cart"]
    assert [(i["size"], i["quantity"]) for i in cart["items"]] == [("S", 2), ("M", 3)]
    assert cart["total_amount"] == 62.5


def test_single_add_merges_with_existing_line(client, user_headers, product):
    payload = {"product_id": product.id, "size": "M", "color": "White", "quantity": 2}

    client.post("/cart/add", json=payload, headers=user_headers)
    res = client.post("/cart/add", json=payload, headers=user_headers)

    items = res.json()["cart"]["items"]
    assert len(items) == 1
    assert items[0]["quantity"] == 4
    assert items[0]["total_price"] == 50.0


def test_add_unknown_product(client, user_headers):
    res = client.post("/cart/add", json={"product_id": 999}, headers=user_headers)
    assert res.status_code == 404


def test_update_and_remove_line(client, user_headers, product):
    added = client.post(
        "/cart/add",
        json={"product_id": product.id, "size": "M", "color": "White", "quantity": 1},
        headers=user_headers,
    )
    line_id = added.json()["cart"]["items"][0]["line_id"]

    updated = client.put("/cart/update", json={"line_id": line_id, "quantity": 3}, headers=user_headers)
    assert updated.json()["cart"]["total_amount"] == 37.5

    removed = client.delete(f"/cart/remove/{line_id}", headers=user_headers)
    assert removed.json()["cart"]["items"] == []


def test_update_missing_line(client, user_headers, cart):
    res = client.put("/cart/update", json={"line_id": "missing", "quantity": 3}, headers=user_headers)
    assert res.status_code == 404


def test_clear_cart(client, user_headers, cart):
    res = client.delete("/cart/clear", headers=user_headers)

    assert res.status_code == 200
    assert client.get("/cart/", headers=user_headers).json()["cart"]["items"] == []
