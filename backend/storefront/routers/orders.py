"""Checkout and order status endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.core.errors import InvalidRequestError, NotFoundError
from storefront.models.order import Order
from storefront.schemas.order import (
    CheckoutQuoteResponse,
    CheckoutRequest,
    OrderResponse,
    OrderStatusUpdate,
)
from storefront.services.order_service import OrderService

router = APIRouter()


@router.post(
    "/quote",
    response_model=CheckoutQuoteResponse,
    summary="Price a checkout",
    responses={
        400: {"description": "Coupon rejected"},
        404: {"description": "User or coupon not found"},
    },
)
async def quote_checkout(
    data: CheckoutRequest,
    db: Session = Depends(get_db),
) -> CheckoutQuoteResponse:
    """Apply the user's segment discount and an optional coupon to a subtotal."""
    try:
        quote = OrderService(db).quote(data.user_id, data.subtotal_cents, data.coupon_code)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    return CheckoutQuoteResponse(
        subtotal_cents=quote.subtotal_cents,
        segment_discount_cents=quote.segment_discount_cents,
        coupon_discount_cents=quote.coupon_discount_cents,
        discount_cents=quote.discount_cents,
        total_cents=quote.total_cents,
        segment_id=quote.segment_id,
        coupon_code=quote.coupon_code,
    )


@router.post(
    "/",
    response_model=OrderResponse,
    status_code=201,
    summary="Create order",
    responses={
        400: {"description": "Coupon rejected"},
        404: {"description": "User or coupon not found"},
    },
)
async def create_order(data: CheckoutRequest, db: Session = Depends(get_db)) -> Order:
    """Create a pending order; a coupon code on the order counts as a redemption."""
    try:
        return OrderService(db).create_order(data.user_id, data.subtotal_cents, data.coupon_code)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.put(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Update order status",
    responses={404: {"description": "Order not found"}},
)
async def update_order_status(
    order_id: UUID,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
) -> Order:
    """Change an order's status. Delivery refreshes the customer's segment."""
    try:
        return OrderService(db).update_status(order_id, data.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
