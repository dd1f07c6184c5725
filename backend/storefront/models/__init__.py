from storefront.models.coupon import Coupon, CouponDiscountType
from storefront.models.order import REVENUE_STATUSES, Order, OrderStatus
from storefront.models.segment import CustomerSegment
from storefront.models.segment_coupon import SegmentCoupon
from storefront.models.user import User

__all__ = [
    "Coupon",
    "CouponDiscountType",
    "CustomerSegment",
    "Order",
    "OrderStatus",
    "REVENUE_STATUSES",
    "SegmentCoupon",
    "User",
]
