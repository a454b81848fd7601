import logging

from fastapi import FastAPI
from storefront.database import create_db_and_tables
from storefront.config import settings
from storefront.routes import (
    auth,
    users,
    products,
    catalog,
    cart,
    orders,
    review,
    return_requests,
    shipping_structures,
    stripe_payments,
    realtime,
    verification,
    consultation,
    health,
)

from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Wholesale Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(products.router, prefix="/products", tags=["Public Products"])
app.include_router(products.admin_router, prefix="/admin/products", tags=["Admin Products"])
app.include_router(catalog.router, prefix="/catalog", tags=["Catalog"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(review.router, tags=["Reviews"])
app.include_router(return_requests.router, prefix="/returns", tags=["Return Requests"])
app.include_router(shipping_structures.router, prefix="/shipping-structures", tags=["Shipping"])
app.include_router(stripe_payments.router, prefix="/stripe", tags=["Stripe"])
app.include_router(realtime.router, tags=["Realtime"])
app.include_router(verification.router, prefix="/verification", tags=["Verification"])
app.include_router(consultation.router, prefix="/consultation", tags=["Consultation"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "auth_endpoints": [
            "/auth/register", "/auth/login", "/auth/logout", "/auth/refresh-token", "/auth/reset-password",
        ],
        "user_endpoints": ["/users/me", "/users/change-password", "/users", "/users/{user_id}"],
        "verification": ["/verification/send", "/verification/verify", "/verification/resend"],
        "products": ["/products", "/products/{product_id}", "/admin/products"],
        "catalog": ["/catalog", "/catalog/{item_id}"],
        "cart": ["/cart", "/cart/add", "/cart/update", "/cart/remove/{line_id}", "/cart/clear"],
        "orders": ["/orders", "/orders/{order_id}", "/orders/{order_id}/cancel", "/orders/admin/all"],
        "stripe": [
            "/stripe/create-payment-intent", "/stripe/create-checkout-session",
            "/stripe/confirm-payment", "/stripe/verify-session/{session_id}", "/stripe/webhook",
        ],
        "shipping": ["/shipping-structures", "/shipping-structures/{id}/calculate"],
        "reviews": ["/products/{product_id}/reviews", "/reviews/user", "/reviews/{review_id}"],
        "returns": ["/returns", "/returns/my-requests"],
        "realtime": ["/ws"],
        "consultation": ["/consultation/request"],
    }
