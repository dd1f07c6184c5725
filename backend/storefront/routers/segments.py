"""Customer segment API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.errors import InvalidRequestError, NotFoundError
from storefront.models.segment import CustomerSegment
from storefront.schemas.segment import (
    BulkRecalculationResponse,
    Pagination,
    RecalculationJobResponse,
    RecentOrderTotal,
    SegmentAssignmentResponse,
    SegmentCouponSummary,
    SegmentCreate,
    SegmentCustomer,
    SegmentCustomersResponse,
    SegmentDetailResponse,
    SegmentListItem,
    SegmentResponse,
    SegmentStatsResponse,
    SegmentUpdate,
)
from storefront.services.segment_service import SegmentService
from storefront.tasks import enqueue_segment_assignment, enqueue_segment_recalculation

router = APIRouter()


@router.get(
    "/",
    response_model=list[SegmentListItem],
    summary="List segments",
)
async def list_segments(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[SegmentListItem]:
    """List segments by priority with their member counts."""
    service = SegmentService(db)
    return [
        SegmentListItem.model_validate(segment).model_copy(update={"user_count": count})
        for segment, count in service.list_segments(include_inactive=include_inactive)
    ]


@router.get(
    "/stats",
    response_model=list[SegmentStatsResponse],
    summary="Get segment statistics",
)
async def get_segment_stats(db: Session = Depends(get_db)) -> list[SegmentStatsResponse]:
    """Customer count and total lifetime spend per active segment."""
    return [
        SegmentStatsResponse(
            id=stat.segment.id,  # type: ignore[arg-type]
            name=stat.segment.name,  # type: ignore[arg-type]
            slug=stat.segment.slug,  # type: ignore[arg-type]
            color=stat.segment.color,  # type: ignore[arg-type]
            icon=stat.segment.icon,  # type: ignore[arg-type]
            customer_count=stat.customer_count,
            total_spent_cents=stat.total_spent_cents,
            discount_percent=stat.segment.discount_percent,  # type: ignore[arg-type]
        )
        for stat in SegmentService(db).get_segment_stats()
    ]


@router.post(
    "/recalculate",
    response_model=BulkRecalculationResponse,
    summary="Recalculate all customer segments",
)
async def recalculate_segments(db: Session = Depends(get_db)) -> BulkRecalculationResponse:
    """Reassign every user's segment from their lifetime spend."""
    result = SegmentService(db).bulk_recalculate_segments()
    return BulkRecalculationResponse(updated=result.updated, failed=result.failed)


@router.post(
    "/recalculate/async",
    response_model=RecalculationJobResponse,
    status_code=202,
    summary="Queue a recalculation of all customer segments",
)
async def recalculate_segments_async() -> RecalculationJobResponse:
    """Hand the bulk recalculation to the background worker."""
    job = await enqueue_segment_recalculation()
    return RecalculationJobResponse(job_id=job.job_id)


@router.get(
    "/customers/{slug}",
    response_model=SegmentCustomersResponse,
    summary="List customers in a segment",
    responses={404: {"description": "Segment not found"}},
)
async def get_customers_by_segment(
    slug: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.SEGMENT_CUSTOMERS_PAGE_SIZE, ge=1, le=100),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> SegmentCustomersResponse:
    """One page of a segment's members with their latest order totals."""
    try:
        result = SegmentService(db).get_customers_by_segment(
            slug, page=page, limit=limit, order_by=order_by
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None

    customers = [
        SegmentCustomer.model_validate(member.user).model_copy(
            update={
                "recent_orders": [
                    RecentOrderTotal.model_validate(order) for order in member.recent_orders
                ]
            }
        )
        for member in result.members
    ]
    return SegmentCustomersResponse(
        customers=customers,
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.post(
    "/assign/{user_id}",
    response_model=SegmentAssignmentResponse,
    summary="Recalculate and assign a user's segment",
    responses={404: {"description": "User not found"}},
)
async def assign_segment_to_user(
    user_id: UUID,
    db: Session = Depends(get_db),
) -> SegmentAssignmentResponse:
    """Recompute one user's lifetime spend and segment."""
    try:
        result = SegmentService(db).assign_segment_to_user(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None

    return SegmentAssignmentResponse(
        spending=result.spending,
        segment=SegmentResponse.model_validate(result.segment) if result.segment else None,
    )


@router.post(
    "/assign/{user_id}/async",
    response_model=RecalculationJobResponse,
    status_code=202,
    summary="Queue a segment reassignment for one user",
)
async def assign_segment_to_user_async(user_id: UUID) -> RecalculationJobResponse:
    """Hand one user's segment reassignment to the background worker."""
    job = await enqueue_segment_assignment(user_id)
    return RecalculationJobResponse(job_id=job.job_id)


@router.get(
    "/{segment_id}",
    response_model=SegmentDetailResponse,
    summary="Get segment",
    responses={404: {"description": "Segment not found"}},
)
async def get_segment(segment_id: int, db: Session = Depends(get_db)) -> SegmentDetailResponse:
    """Get a segment with its member count and the coupons restricted to it."""
    service = SegmentService(db)
    try:
        segment = service.get_segment(segment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None

    return SegmentDetailResponse.model_validate(segment).model_copy(
        update={
            "user_count": service.count_users(segment_id),
            "coupons": [
                SegmentCouponSummary.model_validate(link.coupon) for link in segment.coupon_links
            ],
        }
    )


@router.post(
    "/",
    response_model=SegmentResponse,
    status_code=201,
    summary="Create segment",
    responses={
        400: {"description": "Slug already exists or invalid spend range"},
        422: {"description": "Validation error"},
    },
)
async def create_segment(data: SegmentCreate, db: Session = Depends(get_db)) -> CustomerSegment:
    """Create a customer segment."""
    try:
        return SegmentService(db).create_segment(data)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.put(
    "/{segment_id}",
    response_model=SegmentResponse,
    summary="Update segment",
    responses={
        400: {"description": "Slug already exists or invalid spend range"},
        404: {"description": "Segment not found"},
        422: {"description": "Validation error"},
    },
)
async def update_segment(
    segment_id: int,
    data: SegmentUpdate,
    db: Session = Depends(get_db),
) -> CustomerSegment:
    """Update a customer segment."""
    try:
        return SegmentService(db).update_segment(segment_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.delete(
    "/{segment_id}",
    status_code=204,
    summary="Delete segment",
    responses={404: {"description": "Segment not found"}},
)
async def delete_segment(segment_id: int, db: Session = Depends(get_db)) -> None:
    """Delete a segment. Its customers become unsegmented."""
    try:
        SegmentService(db).delete_segment(segment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
