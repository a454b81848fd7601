from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.product import Product
from storefront.models.shipping_structure import ShippingStructure
from storefront.models.user import User
from storefront.schemas.shipping_schemas import (
    ShippingCalculateRequest,
    ShippingStructureCreate,
    ShippingStructureUpdate,
)
from storefront.services.shipping_service import (
    ShippingRuleError,
    calculate_shipping_cost,
    sort_and_validate_rules,
    unset_other_defaults,
)

router = APIRouter()


def _validated_rules(rules) -> list:
    try:
        return sort_and_validate_rules([r.model_dump() for r in rules])
    except ShippingRuleError as e:
        raise HTTPException(400, str(e))


def _name_taken(session: Session, name: str, exclude_id: int | None = None) -> bool:
    existing = session.exec(select(ShippingStructure).where(ShippingStructure.name == name)).first()
    return existing is not None and existing.id != exclude_id


# -------------------------
# PUBLIC
# -------------------------

@router.get("/")
def list_shipping_structures(session: Session = Depends(get_session)):
    structures = session.exec(
        select(ShippingStructure)
        .where(ShippingStructure.is_active == True)  # noqa: E712
        .order_by(ShippingStructure.is_default.desc(), ShippingStructure.name)
    ).all()
    return {"structures": structures}


@router.get("/admin/all")
def list_all_shipping_structures(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    structures = session.exec(
        select(ShippingStructure)
        .order_by(ShippingStructure.is_default.desc(), ShippingStructure.created_at.desc())
    ).all()
    return {"structures": structures}


@router.get("/{structure_id}")
def get_shipping_structure(structure_id: int, session: Session = Depends(get_session)):
    structure = session.get(ShippingStructure, structure_id)
    if not structure:
        raise HTTPException(404, "Shipping structure not found")
    return structure


@router.post("/{structure_id}/calculate")
def calculate_shipping(
    structure_id: int,
    data: ShippingCalculateRequest,
    session: Session = Depends(get_session),
):
    structure = session.get(ShippingStructure, structure_id)
    if not structure:
        raise HTTPException(404, "Shipping structure not found")

    cost, rule = calculate_shipping_cost(structure.rules, data.total_items)

    return {
        "shipping_cost": cost,
        "total_items": data.total_items,
        "applied_rule": rule,
        "structure_name": structure.name,
    }


# -------------------------
# ADMIN
# -------------------------

@router.post("/", status_code=201)
def create_shipping_structure(
    data: ShippingStructureCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    rules = _validated_rules(data.rules)

    if _name_taken(session, data.name):
        raise HTTPException(400, "Shipping structure with this name already exists")

    structure = ShippingStructure(
        name=data.name,
        description=data.description,
        rules=rules,
        is_default=data.is_default,
        is_active=data.is_active,
    )
    session.add(structure)
    session.flush()

    if structure.is_default:
        unset_other_defaults(session, structure.id)

    session.commit()
    session.refresh(structure)

    return {"message": "Shipping structure created successfully", "structure": structure}


@router.put("/{structure_id}")
def update_shipping_structure(
    structure_id: int,
    data: ShippingStructureUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    structure = session.get(ShippingStructure, structure_id)
    if not structure:
        raise HTTPException(404, "Shipping structure not found")

    updates = data.model_dump(exclude_unset=True, exclude={"rules"})

    if data.rules is not None:
        structure.rules = _validated_rules(data.rules)

    if updates.get("name") and _name_taken(session, updates["name"], exclude_id=structure.id):
        raise HTTPException(400, "Shipping structure with this name already exists")

    for key, value in updates.items():
        setattr(structure, key, value)

    if structure.is_default:
        unset_other_defaults(session, structure.id)

    structure.updated_at = datetime.utcnow()
    session.add(structure)
    session.commit()
    session.refresh(structure)

    return {"message": "Shipping structure updated successfully", "structure": structure}


@router.delete("/{structure_id}")
def delete_shipping_structure(
    structure_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    structure = session.get(ShippingStructure, structure_id)
    if not structure:
        raise HTTPException(404, "Shipping structure not found")

    in_use = session.exec(
        select(Product.id).where(Product.shipping_structure_id == structure_id)
    ).all()
    if in_use:
        raise HTTPException(
            400,
            f"Cannot delete shipping structure. It is being used by {len(in_use)} product(s).",
        )

    session.delete(structure)
    session.commit()

    return {"message": "Shipping structure deleted successfully"}
