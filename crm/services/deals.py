"""Deal helpers shared by the deal routes."""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.models.deal import Deal, DealProduct

CENTS = Decimal("0.01")


def line_total(item: DealProduct) -> Decimal:
    return (Decimal(str(item.price_at_sale)) * item.quantity).quantize(
        CENTS, rounding=ROUND_HALF_UP,
    )


async def recompute_deal_amount(session: AsyncSession, deal_id: uuid.UUID) -> Deal | None:
    """Set the deal amount to the sum of its line totals. Caller commits."""
    deal = await session.get(Deal, deal_id)
    if deal is None:
        return None

    result = await session.execute(select(DealProduct).where(DealProduct.deal_id == deal_id))
    total = sum((line_total(item) for item in result.scalars().all()), Decimal("0"))

    deal.amount = float(total)
    deal.touch()
    session.add(deal)
    return deal
