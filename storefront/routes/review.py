from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.models.product import Product
from storefront.models.review import Review
from storefront.models.user import User
from storefront.schemas.review_schemas import ReviewCreate, ReviewRead, ReviewUpdate
from storefront.services.product_service import refresh_rating
from storefront.utils.token import get_current_user

router = APIRouter()


def _to_read(review: Review, user: User | None) -> ReviewRead:
    return ReviewRead(
        **review.model_dump(),
        user_name=user.full_name if user else None,
    )


def _get_own_review(session: Session, review_id: int, user: User) -> Review:
    review = session.get(Review, review_id)

    if not review:
        raise HTTPException(404, "Review not found")

    if review.user_id != user.id:
        raise HTTPException(403, "You can only modify your own reviews")

    return review


# ---------------------------------------------------------
# CREATE A REVIEW
# ---------------------------------------------------------

@router.post("/products/{product_id}/reviews", status_code=201)
def create_review(
    product_id: int,
    data: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not session.get(Product, product_id):
        raise HTTPException(404, "Product not found")

    existing = session.exec(
        select(Review).where(Review.user_id == current_user.id, Review.product_id == product_id)
    ).first()
    if existing:
        raise HTTPException(
            400,
            "You have already reviewed this product. You can update your existing review.",
        )

    review = Review(
        user_id=current_user.id,
        product_id=product_id,
        rating=data.rating,
        comment=data.comment,
    )
    session.add(review)
    session.flush()

    refresh_rating(session, product_id)
    session.commit()
    session.refresh(review)

    return {"message": "Review created successfully", "review": _to_read(review, current_user)}


# ---------------------------------------------------------
# LIST REVIEWS
# ---------------------------------------------------------

@router.get("/products/{product_id}/reviews")
def get_product_reviews(product_id: int, session: Session = Depends(get_session)):
    rows = session.exec(
        select(Review, User)
        .join(User, Review.user_id == User.id)
        .where(Review.product_id == product_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()

    reviews = [_to_read(review, user) for review, user in rows]
    return {"reviews": reviews, "count": len(reviews)}


@router.get("/reviews/user")
def get_my_reviews(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    reviews = session.exec(
        select(Review)
        .where(Review.user_id == current_user.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()

    return {"reviews": [_to_read(r, current_user) for r in reviews], "count": len(reviews)}


# ---------------------------------------------------------
# UPDATE / DELETE
# ---------------------------------------------------------

@router.put("/reviews/{review_id}")
def update_review(
    review_id: int,
    data: ReviewUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = _get_own_review(session, review_id, current_user)

    if data.rating is not None:
        review.rating = data.rating

    if data.comment is not None:
        review.comment = data.comment

    review.updated_at = datetime.utcnow()

    session.add(review)
    session.flush()

    refresh_rating(session, review.product_id)
    session.commit()
    session.refresh(review)

    return {"message": "Review updated successfully", "review": _to_read(review, current_user)}


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = _get_own_review(session, review_id, current_user)
    product_id = review.product_id

    session.delete(review)
    session.flush()

    refresh_rating(session, product_id)
    session.commit()

    return {"message": "Review deleted successfully"}
