import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order
from storefront.models.return_request import ReturnRequest
from storefront.models.review import Review
from storefront.models.user import User
from storefront.schemas.user_schemas import AdminUserCreate, PasswordChange, RoleUpdate, UserRead, UserUpdate
from storefront.services.cart_service import find_cart_by_user
from storefront.services.product_service import refresh_rating
from storefront.utils.hash import hash_password, verify_password
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


# -------- USER PROFILE --------

@router.get("/me", response_model=UserRead)
def get_my_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me")
def update_my_profile(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    current_user.updated_at = datetime.utcnow()

    session.add(current_user)
    session.commit()
    session.refresh(current_user)

    return {
        "message": "Profile updated successfully",
        "user": UserRead.model_validate(current_user),
    }


@router.post("/change-password")
def change_password(
    payload: PasswordChange,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(payload.current_password, current_user.password):
        raise HTTPException(400, "Current password is incorrect")

    current_user.password = hash_password(payload.new_password)
    current_user.updated_at = datetime.utcnow()

    session.add(current_user)
    session.commit()

    return {"message": "Password updated successfully"}


# -------- ADMIN --------

@router.get("/")
def list_users(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(User).order_by(User.created_at.desc())

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(User.email.ilike(pattern), User.company_name.ilike(pattern))
        )

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serializer=UserRead.model_validate,
    )


@router.put("/{user_id}/role")
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(404, "User not found")

    if user.id == admin.id:
        raise HTTPException(400, "You cannot change your own role")

    user.role = payload.role
    user.updated_at = datetime.utcnow()

    session.add(user)
    session.commit()
    session.refresh(user)

    return {"message": "Role updated", "user": UserRead.model_validate(user)}


@router.post("/", status_code=201)
def create_user(
    payload: AdminUserCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    email = payload.email.lower()
    if session.exec(select(User).where(User.email == email)).first():
        raise HTTPException(400, "User with this email already exists")

    user = User(
        **payload.model_dump(exclude={"email", "password"}),
        email=email,
        password=hash_password(payload.password),
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"User {user.email} ({user.role}) created by admin {admin.id}")

    return {"message": "User created successfully", "user": UserRead.model_validate(user)}


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if user_id == admin.id:
        raise HTTPException(400, "You cannot delete your own account")

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(404, "User not found")

    # order history keeps its owner
    order_count = session.exec(select(func.count(Order.id)).where(Order.user_id == user_id)).one()
    if order_count:
        raise HTTPException(400, f"User has {order_count} order(s) and cannot be deleted")

    cart = find_cart_by_user(session, user_id)
    if cart:
        session.delete(cart)

    for return_request in session.exec(select(ReturnRequest).where(ReturnRequest.user_id == user_id)).all():
        session.delete(return_request)

    reviewed = set()
    for review in session.exec(select(Review).where(Review.user_id == user_id)).all():
        reviewed.add(review.product_id)
        session.delete(review)
    session.flush()

    for product_id in reviewed:
        refresh_rating(session, product_id)

    email = user.email
    session.delete(user)
    session.commit()

    logger.info(f"User {email} deleted by admin {admin.id}")

    return {"message": "User deleted successfully"}
