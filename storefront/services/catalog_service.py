from typing import Dict, Iterable, List

from fastapi import HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from storefront.models.catalog_item import CatalogItem
from storefront.models.product import Product

# type -> key in the grouped listing
CATALOG_GROUPS = {
    "brand": "brands",
    "category": "categories",
    "subcategory": "subcategories",
    "gender": "genders",
    "sale": "sales",
}

# product column holding the entry's name, per type
PRODUCT_COLUMNS = {
    "brand": Product.brand,
    "category": Product.category,
    "subcategory": Product.subcategory,
    "gender": Product.gender,
}


def group_catalog(items: Iterable[CatalogItem]) -> Dict[str, List[CatalogItem]]:
    grouped = {key: [] for key in CATALOG_GROUPS.values()}
    for item in items:
        grouped[CATALOG_GROUPS[item.type]].append(item)
    return grouped


def check_parent(session: Session, item_type: str, parent_id):
    if item_type != "subcategory":
        if parent_id is not None:
            raise HTTPException(400, "Only subcategories can have a parent")
        return

    parent = session.get(CatalogItem, parent_id) if parent_id is not None else None
    if not parent or parent.type != "category":
        raise HTTPException(400, "Subcategory must belong to an existing category")


def find_duplicate(session: Session, item_type: str, name: str, parent_id):
    # NULL parents never collide in a unique index, so check here too
    return session.exec(
        select(CatalogItem).where(
            CatalogItem.type == item_type,
            func.lower(CatalogItem.name) == name.lower(),
            CatalogItem.parent_id == parent_id if parent_id is not None else CatalogItem.parent_id.is_(None),
        )
    ).first()


def count_products_using(session: Session, item: CatalogItem) -> int:
    if item.type == "sale":
        condition = Product.sale_id == item.id
    else:
        condition = PRODUCT_COLUMNS[item.type] == item.name

    return session.exec(select(func.count(Product.id)).where(condition)).one()


def count_children(session: Session, item: CatalogItem) -> int:
    return session.exec(select(func.count(CatalogItem.id)).where(CatalogItem.parent_id == item.id)).one()


def rename_in_products(session: Session, item: CatalogItem, new_name: str) -> int:
    """Carry a renamed brand/category/subcategory/gender over to the products that use it."""
    column = PRODUCT_COLUMNS.get(item.type)
    if column is None:
        return 0

    products = session.exec(select(Product).where(column == item.name)).all()
    for product in products:
        setattr(product, column.key, new_name)
        session.add(product)
    return len(products)
