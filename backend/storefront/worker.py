import logging
from typing import Any
from uuid import UUID

from arq import cron

from storefront.core.config import settings
from storefront.core.database import SessionLocal
from storefront.core.errors import NotFoundError
from storefront.services.segment_service import SegmentService
from storefront.tasks import redis_settings

logger = logging.getLogger(__name__)


async def recalculate_segments_task(ctx: dict[str, Any]) -> int:
    """Background task: reassign every customer's segment from lifetime spend.

    Runs nightly so tiers stay current even when an order settles without
    passing through delivery (e.g. status edits made directly in the database).
    """
    db = SessionLocal()
    try:
        result = SegmentService(db).bulk_recalculate_segments()
        if result.failed:
            logger.warning(
                "Segment recalculation failed for %d users: %s",
                len(result.failed),
                ", ".join(str(user_id) for user_id in result.failed),
            )
        return result.updated
    finally:
        db.close()


async def assign_segment_task(ctx: dict[str, Any], user_id: str) -> int | None:
    """Background task: reassign one customer's segment.

    Args:
        ctx: ARQ worker context.
        user_id: UUID string of the customer.

    Returns:
        The resolved segment id, or None for an unknown user or when no
        segment is active.
    """
    db = SessionLocal()
    try:
        try:
            assignment = SegmentService(db).assign_segment_to_user(UUID(user_id))
        except NotFoundError:
            logger.warning("User %s not found for segment assignment", user_id)
            return None
        return assignment.segment.id if assignment.segment else None  # type: ignore[return-value]
    finally:
        db.close()


class WorkerSettings:
    functions = [
        recalculate_segments_task,
        assign_segment_task,
    ]
    cron_jobs = [
        cron(recalculate_segments_task, hour=settings.SEGMENT_RECALCULATION_HOUR, minute=0),
    ]
    redis_settings = redis_settings
