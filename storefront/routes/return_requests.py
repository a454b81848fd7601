import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order
from storefront.models.return_request import ReturnRequest
from storefront.models.user import User
from storefront.notifications import OrderEvent, dispatch_order_event
from storefront.schemas.return_schemas import ReturnRequestCreate, ReturnRequestUpdate
from storefront.services.order_service import serialize_user
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", status_code=201)
def create_return_request(
    data: ReturnRequestCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = session.exec(
        select(Order).where(Order.order_number == data.order_id, Order.user_id == current_user.id)
    ).first()
    if not order:
        raise HTTPException(404, "Order not found")

    request = ReturnRequest(
        user_id=current_user.id,
        order_id=order.order_number,
        reason=data.reason,
        message=data.message,
    )
    session.add(request)
    session.commit()
    session.refresh(request)

    logger.info(f"Return request {request.id} for {order.order_number} by user {current_user.id}")

    # admin email only; failure never blocks the request
    dispatch_order_event(
        event=OrderEvent.RETURN_REQUESTED,
        order=order,
        user=current_user,
        extra={
            "admin_template": "admin_emails/return_request.html",
            "admin_subject": f"New Return Request - {order.order_number}",
            "context": {"return_request": request},
        },
    )

    return {"message": "Return request submitted successfully", "request": request}


@router.get("/my-requests")
def get_my_return_requests(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    requests = session.exec(
        select(ReturnRequest)
        .where(ReturnRequest.user_id == current_user.id)
        .order_by(ReturnRequest.created_at.desc(), ReturnRequest.id.desc())
    ).all()
    return {"requests": requests}


# -------- ADMIN --------

@router.get("/")
def get_all_return_requests(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    rows = session.exec(
        select(ReturnRequest, User)
        .join(User, ReturnRequest.user_id == User.id)
        .order_by(ReturnRequest.created_at.desc(), ReturnRequest.id.desc())
    ).all()

    return {
        "requests": [
            {**request.model_dump(), "user": serialize_user(user)}
            for request, user in rows
        ]
    }


@router.put("/{request_id}")
def update_return_request(
    request_id: int,
    data: ReturnRequestUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    request = session.get(ReturnRequest, request_id)
    if not request:
        raise HTTPException(404, "Return request not found")

    request.status = data.status
    if data.admin_response is not None:
        request.admin_response = data.admin_response
    request.updated_at = datetime.utcnow()

    session.add(request)
    session.commit()
    session.refresh(request)

    return {"message": "Return request updated", "request": request}
