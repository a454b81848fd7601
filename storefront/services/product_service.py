import logging
import random
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from storefront.models.product import Product
from storefront.models.review import Review

logger = logging.getLogger(__name__)


def generate_sku(brand: str) -> str:
    """BRA-0042 style: brand prefix plus four random digits."""
    prefix = (brand or "GEN")[:3].upper()
    return f"{prefix}-{random.randint(0, 9999):04d}"


def unique_sku(session: Session, brand: str, attempts: int = 10) -> str:
    for _ in range(attempts):
        sku = generate_sku(brand)
        if not session.exec(select(Product.id).where(Product.sku == sku)).first():
            return sku
    raise ValueError(f"Could not generate a unique SKU for brand {brand}")


def get_active_product(session: Session, product_id: int) -> Optional[Product]:
    product = session.get(Product, product_id)
    if not product or not product.is_active:
        return None
    return product


def refresh_rating(session: Session, product_id: int) -> None:
    """Recompute average_rating (1 decimal) and review_count from the reviews table."""
    product = session.get(Product, product_id)
    if not product:
        return

    avg, count = session.exec(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.product_id == product_id)
    ).one()

    product.average_rating = round(float(avg), 1) if count else 0.0
    product.review_count = count
    product.updated_at = datetime.utcnow()
    session.add(product)
