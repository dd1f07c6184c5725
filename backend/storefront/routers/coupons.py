"""Coupon API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.errors import InvalidRequestError, NotFoundError
from storefront.core.rate_limiter import RateLimiter
from storefront.models.coupon import Coupon
from storefront.models.order import Order
from storefront.repositories.user_repository import UserRepository
from storefront.schemas.coupon import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponUsageResponse,
    CouponValidationResponse,
    CouponWithUsageResponse,
    ValidateCouponRequest,
)
from storefront.services.coupon_service import CouponService

router = APIRouter()

# Module-level rate limiter instance for coupon validation
coupon_validation_rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_COUPON_VALIDATIONS_PER_MINUTE,
    window_seconds=60,
)


@router.get(
    "/",
    response_model=list[CouponWithUsageResponse],
    summary="List coupons",
)
async def list_coupons(db: Session = Depends(get_db)) -> list[CouponWithUsageResponse]:
    """List every coupon with its segments and redemption count."""
    service = CouponService(db)
    return [
        CouponWithUsageResponse.model_validate(coupon).model_copy(update={"usage_count": count})
        for coupon, count in service.list_coupons()
    ]


@router.get(
    "/available",
    response_model=list[CouponResponse],
    summary="List available coupons",
    responses={404: {"description": "User not found"}},
)
async def list_available_coupons(
    user_id: UUID | None = Query(default=None),
    segment_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[Coupon]:
    """List coupons the caller can redeem now.

    When ``segment_id`` is omitted the user's current segment is used.
    """
    if user_id is not None:
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if segment_id is None:
            segment_id = user.segment_id  # type: ignore[assignment]

    service = CouponService(db)
    return service.get_available_coupons(user_segment_id=segment_id, user_id=user_id)


@router.post(
    "/validate",
    response_model=CouponValidationResponse,
    summary="Validate coupon",
    responses={
        400: {"description": "Coupon expired, exhausted or not valid for the user's segment"},
        404: {"description": "Coupon or user not found"},
        429: {"description": "Too many validation attempts"},
    },
)
async def validate_coupon(
    data: ValidateCouponRequest,
    db: Session = Depends(get_db),
) -> CouponValidationResponse:
    """Check a coupon code against a user and subtotal and return the discount."""
    key = str(data.user_id)
    if not coupon_validation_rate_limiter.is_allowed(key):
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Maximum "
            f"{settings.RATE_LIMIT_COUPON_VALIDATIONS_PER_MINUTE} validations per minute.",
            headers={"Retry-After": str(coupon_validation_rate_limiter.retry_after(key))},
        )

    user = UserRepository(db).get_by_id(data.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    segment_id = data.segment_id if data.segment_id is not None else user.segment_id

    service = CouponService(db)
    try:
        result = service.validate_coupon(
            data.code,
            data.user_id,
            data.subtotal,
            user_segment_id=segment_id,  # type: ignore[arg-type]
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    return CouponValidationResponse(
        coupon=CouponResponse.model_validate(result.coupon),
        discount_amount=result.discount_amount,
    )


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Get coupon",
    responses={404: {"description": "Coupon not found"}},
)
async def get_coupon(coupon_id: UUID, db: Session = Depends(get_db)) -> Coupon:
    """Get a coupon by ID."""
    try:
        return CouponService(db).get_coupon(coupon_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None


@router.get(
    "/{coupon_id}/usage",
    response_model=list[CouponUsageResponse],
    summary="Get coupon usage history",
    responses={404: {"description": "Coupon not found"}},
)
async def get_coupon_usage(coupon_id: UUID, db: Session = Depends(get_db)) -> list[Order]:
    """Most recent orders that used this coupon, newest first."""
    try:
        return CouponService(db).get_coupon_usage(coupon_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None


@router.post(
    "/",
    response_model=CouponResponse,
    status_code=201,
    summary="Create coupon",
    responses={
        400: {"description": "Duplicate code or unknown segment"},
        422: {"description": "Validation error"},
    },
)
async def create_coupon(data: CouponCreate, db: Session = Depends(get_db)) -> Coupon:
    """Create a coupon, optionally restricted to some segments."""
    try:
        return CouponService(db).create_coupon(data)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.put(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Update coupon",
    responses={
        400: {"description": "Duplicate code, invalid value or unknown segment"},
        404: {"description": "Coupon not found"},
        422: {"description": "Validation error"},
    },
)
async def update_coupon(
    coupon_id: UUID,
    data: CouponUpdate,
    db: Session = Depends(get_db),
) -> Coupon:
    """Update a coupon. Omit ``segment_ids`` to keep the current restrictions."""
    try:
        return CouponService(db).update_coupon(coupon_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.delete(
    "/{coupon_id}",
    status_code=204,
    summary="Delete coupon",
    responses={404: {"description": "Coupon not found"}},
)
async def delete_coupon(coupon_id: UUID, db: Session = Depends(get_db)) -> None:
    """Delete a coupon."""
    try:
        CouponService(db).delete_coupon(coupon_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
