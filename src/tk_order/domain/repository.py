# src/tk_order/domain/repository.py
"""OrderRepository Protocol - interface contract for persistence layer."""
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def lock_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def update_status(self, order_id: str, status: str, db: AsyncSession) -> None: ...

    async def record_payment(
        self,
        order_id: str,
        payment_id: str | None,
        payment_method: str,
        payment_result: dict[str, Any] | None,
        paid_at: datetime | None,
        status: str,
        db: AsyncSession,
    ) -> None: ...

    async def list_overdue_ids(
        self, now: datetime, limit: int, db: AsyncSession
    ) -> list[str]: ...
