from storefront.schemas.coupon import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponUsageResponse,
    CouponUsageUser,
    CouponValidationResponse,
    CouponWithUsageResponse,
    ValidateCouponRequest,
)
from storefront.schemas.order import (
    CheckoutQuoteResponse,
    CheckoutRequest,
    OrderResponse,
    OrderStatusUpdate,
)
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
    SegmentSummary,
    SegmentUpdate,
)

__all__ = [
    "BulkRecalculationResponse",
    "CheckoutQuoteResponse",
    "CheckoutRequest",
    "CouponCreate",
    "CouponResponse",
    "CouponUpdate",
    "CouponUsageResponse",
    "CouponUsageUser",
    "CouponValidationResponse",
    "CouponWithUsageResponse",
    "OrderResponse",
    "OrderStatusUpdate",
    "Pagination",
    "RecalculationJobResponse",
    "RecentOrderTotal",
    "SegmentAssignmentResponse",
    "SegmentCouponSummary",
    "SegmentCreate",
    "SegmentCustomer",
    "SegmentCustomersResponse",
    "SegmentDetailResponse",
    "SegmentListItem",
    "SegmentResponse",
    "SegmentStatsResponse",
    "SegmentSummary",
    "SegmentUpdate",
    "ValidateCouponRequest",
]
