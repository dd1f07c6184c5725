"""Discount arithmetic shared by coupon validation and checkout pricing."""

from decimal import ROUND_HALF_UP, Decimal

from storefront.models.coupon import CouponDiscountType

HUNDRED = Decimal("100")


def calculate_coupon_discount(
    discount_type: str | CouponDiscountType,
    discount_value: Decimal | int | None,
    subtotal: Decimal | int,
) -> Decimal:
    """Return the raw discount a coupon grants on ``subtotal``.

    Percentage coupons take ``discount_value`` percent of the subtotal, kept
    as an exact Decimal. Fixed-amount coupons grant ``discount_value`` as is,
    even when it exceeds the subtotal; capping is the caller's job.
    """
    value = Decimal(str(discount_value or 0))
    if CouponDiscountType(discount_type) == CouponDiscountType.PERCENTAGE:
        return Decimal(str(subtotal)) * value / HUNDRED
    return value


def to_cents(amount: Decimal | int) -> int:
    """Round an amount to whole cents, halves away from zero."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_segment_discount(discount_percent: Decimal | int | None, subtotal_cents: int) -> int:
    """Automatic tier discount in whole cents."""
    if not discount_percent:
        return 0
    return to_cents(Decimal(subtotal_cents) * Decimal(str(discount_percent)) / HUNDRED)


def combine_discounts(subtotal_cents: int, *amounts: Decimal | int) -> int:
    """Sum discounts in whole cents, never exceeding the subtotal."""
    total = sum((to_cents(amount) for amount in amounts), 0)
    return max(0, min(total, subtotal_cents))
