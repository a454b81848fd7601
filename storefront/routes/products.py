from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.catalog_item import CatalogItem
from storefront.models.product import Product
from storefront.models.review import Review
from storefront.models.shipping_structure import ShippingStructure
from storefront.models.user import User
from storefront.schemas.product_schemas import ProductCreate, ProductUpdate
from storefront.services.product_service import get_active_product, unique_sku
from storefront.utils.pagination import paginate

router = APIRouter()
admin_router = APIRouter()


def _check_shipping_structure(session: Session, structure_id: Optional[int]):
    if structure_id is not None and not session.get(ShippingStructure, structure_id):
        raise HTTPException(400, "Shipping structure not found")


def _check_sale(session: Session, sale_id: Optional[int]):
    if sale_id is None:
        return
    sale = session.get(CatalogItem, sale_id)
    if not sale or sale.type != "sale":
        raise HTTPException(400, "Sale not found")


# ---------------------------------------------------------
# PUBLIC CATALOG
# ---------------------------------------------------------

@router.get("/")
def list_products(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
    gender: Optional[str] = None,
    on_sale: Optional[bool] = None,
    session: Session = Depends(get_session),
):
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Product.name.ilike(pattern),
                Product.brand.ilike(pattern),
                Product.sku.ilike(pattern),
            )
        )
    if brand:
        query = query.where(Product.brand == brand)
    if category:
        query = query.where(Product.category == category)
    if gender:
        query = query.where(Product.gender == gender)
    if on_sale is not None:
        query = query.where(Product.on_sale == on_sale)

    return paginate(
        session=session,
        query=query.order_by(Product.created_at.desc()),
        page=page,
        limit=limit,
    )


@router.get("/{product_id}")
def get_product(product_id: int, session: Session = Depends(get_session)):
    product = get_active_product(session, product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    return product


# ---------------------------------------------------------
# ADMIN
# ---------------------------------------------------------

@admin_router.post("/", status_code=201)
def create_product(
    data: ProductCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    _check_shipping_structure(session, data.shipping_structure_id)
    _check_sale(session, data.sale_id)

    if data.sku and session.exec(select(Product).where(Product.sku == data.sku)).first():
        raise HTTPException(400, "SKU already exists")

    product = Product(**data.model_dump(exclude={"sku"}))
    product.sku = data.sku or unique_sku(session, data.brand)
    if data.sale_id is not None:
        product.on_sale = True

    session.add(product)
    session.commit()
    session.refresh(product)

    return {"message": "Product created", "product": product}


@admin_router.put("/{product_id}")
def update_product(
    product_id: int,
    data: ProductUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    updates = data.model_dump(exclude_unset=True)
    if "shipping_structure_id" in updates:
        _check_shipping_structure(session, updates["shipping_structure_id"])
    if "sale_id" in updates:
        _check_sale(session, updates["sale_id"])
        updates.setdefault("on_sale", updates["sale_id"] is not None)

    for key, value in updates.items():
        setattr(product, key, value)

    product.updated_at = datetime.utcnow()

    session.add(product)
    session.commit()
    session.refresh(product)

    return {"message": "Product updated", "product": product}


@admin_router.delete("/{product_id}")
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    for review in session.exec(select(Review).where(Review.product_id == product_id)).all():
        session.delete(review)

    # carts may still reference it; checkout drops such lines
    session.delete(product)
    session.commit()

    return {"message": "Product deleted"}
