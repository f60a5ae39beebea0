"""Counterparty CRUD."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.models.base import apply_update
from crm.models.counterparty import (
    Counterparty,
    CounterpartyCreate,
    CounterpartyRead,
    CounterpartyUpdate,
)
from crm.models.deal import Deal, DealRead

router = APIRouter(prefix="/counterparties", tags=["counterparties"])

# Columns a PATCH may clear with an explicit null
COUNTERPARTY_NULLABLE = ("tax_id", "email", "phone", "address", "contact_person")


@router.post("", response_model=CounterpartyRead, status_code=status.HTTP_201_CREATED)
async def create_counterparty(
    body: CounterpartyCreate,
    auth: Auth,
    session: Session,
) -> CounterpartyRead:
    cp = Counterparty(**body.model_dump())
    session.add(cp)
    await session.commit()
    await session.refresh(cp)
    return CounterpartyRead.model_validate(cp)


@router.get("", response_model=list[CounterpartyRead])
async def list_counterparties(auth: Auth, session: Session) -> list[CounterpartyRead]:
    result = await session.execute(
        select(Counterparty).order_by(Counterparty.created_at.desc())  # type: ignore[union-attr]
    )
    return [CounterpartyRead.model_validate(cp) for cp in result.scalars().all()]


@router.get("/{counterparty_id}", response_model=CounterpartyRead)
async def get_counterparty(
    counterparty_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> CounterpartyRead:
    cp = await _get_or_404(counterparty_id, session)
    return CounterpartyRead.model_validate(cp)


@router.get("/{counterparty_id}/deals", response_model=list[DealRead])
async def list_counterparty_deals(
    counterparty_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> list[DealRead]:
    await _get_or_404(counterparty_id, session)
    result = await session.execute(
        select(Deal)
        .where(Deal.counterparty_id == counterparty_id)
        .order_by(Deal.updated_at.desc())  # type: ignore[union-attr]
    )
    return [DealRead.model_validate(d) for d in result.scalars().all()]


@router.patch("/{counterparty_id}", response_model=CounterpartyRead)
async def update_counterparty(
    counterparty_id: uuid.UUID,
    body: CounterpartyUpdate,
    auth: Auth,
    session: Session,
) -> CounterpartyRead:
    cp = await _get_or_404(counterparty_id, session)
    apply_update(cp, body.model_dump(exclude_unset=True), nullable=COUNTERPARTY_NULLABLE)
    cp.touch()
    session.add(cp)
    await session.commit()
    await session.refresh(cp)
    return CounterpartyRead.model_validate(cp)


@router.delete("/{counterparty_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_counterparty(
    counterparty_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    cp = await _get_or_404(counterparty_id, session)
    result = await session.execute(
        select(func.count()).select_from(Deal).where(Deal.counterparty_id == cp.id)
    )
    if result.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Counterparty is attached to deals",
        )
    await session.delete(cp)
    await session.commit()


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(counterparty_id: uuid.UUID, session) -> Counterparty:
    cp = await session.get(Counterparty, counterparty_id)
    if cp is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Counterparty not found")
    return cp
