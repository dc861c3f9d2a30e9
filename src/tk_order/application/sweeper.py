# src/tk_order/application/sweeper.py
"""Expiry sweep - expires orders whose reservation window has lapsed.

Meant to be run by an external scheduler (cron, k8s CronJob):

    python -m src.tk_order.application.sweeper

Each order is expired in its own session so one failure never blocks the
rest of the batch. Orders that were paid or cancelled between the listing
and the lock are skipped by the state machine as no-ops.
"""
import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tk_common.datetime_utils import utc_now
from src.tk_common.enums import OrderStatus
from src.tk_common.errors import AppError
from src.tk_order.application.service import OrderEngine

logger = logging.getLogger(__name__)


async def sweep_expired_orders(
    session_factory: Callable[[], AsyncSession],
    limit: int | None = None,
    engine: OrderEngine | None = None,
    now: datetime | None = None,
) -> dict[str, int]:
    engine = engine or OrderEngine()
    now = now or utc_now()
    limit = limit or settings.EXPIRY_SWEEP_BATCH_SIZE

    async with session_factory() as db:
        order_ids = await engine.overdue_order_ids(db, now, limit)

    expired = 0
    failed = 0
    for order_id in order_ids:
        async with session_factory() as db:
            try:
                order = await engine.expire(db, order_id, now)
            except AppError as exc:
                failed += 1
                logger.warning("Sweep could not expire order %s: %s", order_id, exc.message)
                continue
            except Exception:
                failed += 1
                logger.exception("Sweep failed on order %s", order_id)
                continue
        if order.status == OrderStatus.EXPIRED:
            expired += 1

    logger.info(
        "Expiry sweep: %d candidate(s), %d expired, %d failed",
        len(order_ids), expired, failed,
    )
    return {"candidates": len(order_ids), "expired": expired, "failed": failed}


async def _main() -> None:
    from src.tk_common.database import async_session_factory, engine

    try:
        await sweep_expired_orders(async_session_factory)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main())
