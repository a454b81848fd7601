import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.catalog_item import CatalogItem
from storefront.models.user import User
from storefront.schemas.catalog_schemas import CatalogItemCreate, CatalogItemUpdate
from storefront.services.catalog_service import (
    check_parent,
    count_children,
    count_products_using,
    find_duplicate,
    group_catalog,
    rename_in_products,
)
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def list_catalog(
    session: Session = Depends(get_session),
    _: User = Depends(get_current_user),
):
    items = session.exec(
        select(CatalogItem)
        .where(CatalogItem.is_active == True)  # noqa: E712
        .order_by(CatalogItem.type, CatalogItem.name)
    ).all()

    return {"data": group_catalog(items)}


@router.post("/", status_code=201)
def create_catalog_item(
    data: CatalogItemCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    check_parent(session, data.type, data.parent_id)

    name = data.name.strip()
    if find_duplicate(session, data.type, name, data.parent_id):
        raise HTTPException(400, "This item already exists")

    item = CatalogItem(
        type=data.type,
        name=name,
        parent_id=data.parent_id,
        discount=data.discount if data.type == "sale" else 0,
    )

    session.add(item)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(400, "This item already exists")
    session.refresh(item)

    logger.info(f"Catalog {item.type} created: {item.name}")

    return {"message": "Catalog item created successfully", "item": item}


@router.put("/{item_id}")
def update_catalog_item(
    item_id: int,
    data: CatalogItemUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    item = session.get(CatalogItem, item_id)
    if not item:
        raise HTTPException(404, "Catalog item not found")

    updates = data.model_dump(exclude_unset=True)

    if "discount" in updates and item.type != "sale":
        raise HTTPException(400, "Only sales carry a discount")

    new_name = (updates.pop("name", None) or "").strip()
    if new_name and new_name != item.name:
        duplicate = find_duplicate(session, item.type, new_name, item.parent_id)
        if duplicate and duplicate.id != item.id:
            raise HTTPException(400, "This item already exists")

        moved = rename_in_products(session, item, new_name)
        logger.info(f"Catalog {item.type} renamed {item.name} -> {new_name} ({moved} products)")
        item.name = new_name

    for key, value in updates.items():
        setattr(item, key, value)

    item.updated_at = datetime.utcnow()

    session.add(item)
    session.commit()
    session.refresh(item)

    return {"message": "Catalog item updated successfully", "item": item}


@router.delete("/{item_id}")
def delete_catalog_item(
    item_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    item = session.get(CatalogItem, item_id)
    if not item:
        raise HTTPException(404, "Catalog item not found")

    in_use = count_products_using(session, item)
    if in_use:
        raise HTTPException(400, f"Cannot delete. This item is used by {in_use} product(s)")

    children = count_children(session, item)
    if children:
        raise HTTPException(400, f"Cannot delete. This category has {children} subcategory(ies)")

    label = f"{item.type} {item.name}"
    session.delete(item)
    session.commit()

    logger.info(f"Catalog {label} deleted")

    return {"message": "Catalog item deleted successfully"}
