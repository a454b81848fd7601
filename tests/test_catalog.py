import pytest

from storefront.models.catalog_item import CatalogItem
from storefront.services.catalog_service import group_catalog


def add_item(client, headers, **data):
    return client.post("/catalog/", json=data, headers=headers)


@pytest.fixture
def tops(client, admin_headers):
    return add_item(client, admin_headers, type="category", name="Tops").json()["item"]


def test_group_catalog():
    items = [
        CatalogItem(type="brand", name="Brava"),
        CatalogItem(type="sale", name="Summer", discount=20),
        CatalogItem(type="brand", name="Norde"),
    ]

    grouped = group_catalog(items)

    assert [i.name for i in grouped["brands"]] == ["Brava", "Norde"]
    assert [i.name for i in grouped["sales"]] == ["Summer"]
    assert grouped["categories"] == [] and grouped["genders"] == [] and grouped["subcategories"] == []


def test_catalog_lists_active_items_grouped(client, session, user_headers, admin_headers):
    add_item(client, admin_headers, type="brand", name="Norde")
    add_item(client, admin_headers, type="brand", name="Brava")
    hidden = add_item(client, admin_headers, type="gender", name="Kids").json()["item"]
    client.put(f"/catalog/{hidden['id']}", json={"is_active": False}, headers=admin_headers)

    res = client.get("/catalog/", headers=user_headers)

    assert res.status_code == 200
    data = res.json()["data"]
    assert [i["name"] for i in data["brands"]] == ["Brava", "Norde"]
    assert data["genders"] == []


def test_catalog_requires_login(client):
    assert client.get("/catalog/").status_code == 401


def test_customer_cannot_create_items(client, user_headers):
    assert add_item(client, user_headers, type="brand", name="Brava").status_code == 403


def test_duplicate_item_rejected(client, admin_headers):
    add_item(client, admin_headers, type="brand", name="Brava")

    res = add_item(client, admin_headers, type="brand", name="brava")

    assert res.status_code == 400
    assert res.json()["detail"] == "This item already exists"


def test_same_name_allowed_across_types(client, admin_headers):
    add_item(client, admin_headers, type="category", name="Outlet")
    assert add_item(client, admin_headers, type="sale", name="Outlet").status_code == 201


def test_subcategory_needs_category_parent(client, admin_headers, tops):
    orphan = add_item(client, admin_headers, type="subcategory", name="Shirts")
    assert orphan.status_code == 400

    res = add_item(client, admin_headers, type="subcategory", name="Shirts", parent_id=tops["id"])
    assert res.status_code == 201
    assert res.json()["item"]["parent_id"] == tops["id"]

    wrong_parent = add_item(client, admin_headers, type="brand", name="Shirts", parent_id=tops["id"])
    assert wrong_parent.status_code == 400


def test_sale_discount_bounds(client, admin_headers):
    assert add_item(client, admin_headers, type="sale", name="Mega", discount=120).status_code == 422

    res = add_item(client, admin_headers, type="sale", name="Summer", discount=25)
    assert res.json()["item"]["discount"] == 25


def test_discount_only_on_sales(client, admin_headers, tops):
    res = client.put(f"/catalog/{tops['id']}", json={"discount": 10}, headers=admin_headers)
    assert res.status_code == 400


def test_unknown_type_rejected(client, admin_headers):
    assert add_item(client, admin_headers, type="colour", name="Red").status_code == 422


def test_rename_brand_carries_over_to_products(client, session, admin_headers, product):
    brand = add_item(client, admin_headers, type="brand", name="Brava").json()["item"]

    res = client.put(f"/catalog/{brand['id']}", json={"name": "Brava Studio"}, headers=admin_headers)

    assert res.status_code == 200
    assert res.json()["item"]["name"] == "Brava Studio"
    session.refresh(product)
    assert product.brand == "Brava Studio"


def test_update_missing_item(client, admin_headers):
    assert client.put("/catalog/999", json={"name": "X"}, headers=admin_headers).status_code == 404


def test_delete_item_in_use(client, admin_headers, product):
    brand = add_item(client, admin_headers, type="brand", name="Brava").json()["item"]

    res = client.delete(f"/catalog/{brand['id']}", headers=admin_headers)

    assert res.status_code == 400
    assert res.json()["detail"] == "Cannot delete. This item is used by 1 product(s)"


def test_delete_sale_in_use(client, session, admin_headers, product):
    sale = add_item(client, admin_headers, type="sale", name="Summer", discount=20).json()["item"]
    linked = client.put(f"/admin/products/{product.id}", json={"sale_id": sale["id"]}, headers=admin_headers)
    assert linked.json()["product"]["on_sale"] is True

    res = client.delete(f"/catalog/{sale['id']}", headers=admin_headers)

    assert res.status_code == 400


def test_product_sale_must_exist(client, admin_headers, product, tops):
    res = client.put(f"/admin/products/{product.id}", json={"sale_id": tops["id"]}, headers=admin_headers)
    assert res.status_code == 400


def test_delete_category_with_subcategories(client, admin_headers, tops):
    add_item(client, admin_headers, type="subcategory", name="Shirts", parent_id=tops["id"])

    res = client.delete(f"/catalog/{tops['id']}", headers=admin_headers)

    assert res.status_code == 400


def test_delete_unused_item(client, session, admin_headers):
    item_id = add_item(client, admin_headers, type="gender", name="Unisex").json()["item"]["id"]

    res = client.delete(f"/catalog/{item_id}", headers=admin_headers)

    assert res.status_code == 200
    assert session.get(CatalogItem, item_id) is None
