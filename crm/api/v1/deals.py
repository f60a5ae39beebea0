"""Deals: CRUD, stage moves, comments and product line items.

Whenever a line item is added, changed or removed the deal amount is
recomputed from the line totals in the same transaction.
"""

import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.models.base import apply_update
from crm.models.counterparty import Counterparty, CounterpartyRead
from crm.models.deal import (
    Comment,
    CommentCreate,
    CommentRead,
    Deal,
    DealCreate,
    DealDetailRead,
    DealProduct,
    DealProductCreate,
    DealProductRead,
    DealProductUpdate,
    DealRead,
    DealStageMove,
    DealUpdate,
)
from crm.models.document import GeneratedDocument
from crm.models.pipeline import Stage
from crm.models.product import Product
from crm.services.deals import line_total, recompute_deal_amount

router = APIRouter(tags=["deals"])


# ── Deals ─────────────────────────────────────────────────────

@router.get("/deals", response_model=list[DealRead])
async def list_deals(
    auth: Auth,
    session: Session,
    pipeline_id: uuid.UUID | None = Query(default=None),
) -> list[DealRead]:
    stmt = select(Deal).order_by(Deal.updated_at.desc())  # type: ignore[union-attr]
    if pipeline_id is not None:
        stmt = stmt.join(Stage, Stage.id == Deal.stage_id).where(  # type: ignore[arg-type]
            Stage.pipeline_id == pipeline_id
        )
    result = await session.execute(stmt)
    return [DealRead.model_validate(d) for d in result.scalars().all()]


@router.post("/deals", response_model=DealRead, status_code=status.HTTP_201_CREATED)
async def create_deal(body: DealCreate, auth: Auth, session: Session) -> DealRead:
    await _ensure_stage(body.stage_id, session)
    await _ensure_counterparty(body.counterparty_id, session)

    deal = Deal(**body.model_dump())
    session.add(deal)
    await session.commit()
    await session.refresh(deal)
    return DealRead.model_validate(deal)


@router.get("/deals/{deal_id}", response_model=DealDetailRead)
async def get_deal(deal_id: uuid.UUID, auth: Auth, session: Session) -> DealDetailRead:
    """Deal with its counterparty, line items and comments."""
    deal = await _get_or_404(deal_id, session)

    counterparty = None
    if deal.counterparty_id is not None:
        cp = await session.get(Counterparty, deal.counterparty_id)
        counterparty = CounterpartyRead.model_validate(cp) if cp else None

    items = await session.execute(
        select(DealProduct, Product)
        .join(Product, Product.id == DealProduct.product_id, isouter=True)  # type: ignore[arg-type]
        .where(DealProduct.deal_id == deal.id)
        .order_by(DealProduct.created_at.asc())  # type: ignore[union-attr]
    )
    comments = await session.execute(
        select(Comment)
        .where(Comment.deal_id == deal.id)
        .order_by(Comment.created_at.desc())  # type: ignore[union-attr]
    )

    return DealDetailRead(
        **DealRead.model_validate(deal).model_dump(),
        counterparty=counterparty,
        products=[_line_item_read(item, product) for item, product in items.all()],
        comments=[CommentRead.model_validate(c) for c in comments.scalars().all()],
    )


@router.patch("/deals/{deal_id}", response_model=DealRead)
async def update_deal(
    deal_id: uuid.UUID,
    body: DealUpdate,
    auth: Auth,
    session: Session,
) -> DealRead:
    deal = await _get_or_404(deal_id, session)
    updates = body.model_dump(exclude_unset=True)
    if "counterparty_id" in updates:
        await _ensure_counterparty(updates["counterparty_id"], session)

    apply_update(deal, updates, nullable=("counterparty_id", "document_number"))
    deal.touch()
    session.add(deal)
    await session.commit()
    await session.refresh(deal)
    return DealRead.model_validate(deal)


@router.patch("/deals/{deal_id}/stage", response_model=DealRead)
async def move_deal(
    deal_id: uuid.UUID,
    body: DealStageMove,
    auth: Auth,
    session: Session,
) -> DealRead:
    deal = await _get_or_404(deal_id, session)
    await _ensure_stage(body.stage_id, session)
    deal.stage_id = body.stage_id
    deal.touch()
    session.add(deal)
    await session.commit()
    await session.refresh(deal)
    return DealRead.model_validate(deal)


@router.delete("/deals/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deal(deal_id: uuid.UUID, auth: Auth, session: Session) -> None:
    deal = await _get_or_404(deal_id, session)
    # Children first; the schema has no ON DELETE CASCADE
    for model in (DealProduct, Comment, GeneratedDocument):
        result = await session.execute(select(model).where(model.deal_id == deal.id))
        for row in result.scalars().all():
            await session.delete(row)
    await session.delete(deal)
    await session.commit()


# ── Comments ──────────────────────────────────────────────────

@router.post(
    "/deals/{deal_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    deal_id: uuid.UUID,
    body: CommentCreate,
    auth: Auth,
    session: Session,
) -> CommentRead:
    await _get_or_404(deal_id, session)
    comment = Comment(deal_id=deal_id, content=body.content)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)
    return CommentRead.model_validate(comment)


# ── Line items ────────────────────────────────────────────────

@router.post(
    "/deals/{deal_id}/products",
    response_model=DealProductRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_line_item(
    deal_id: uuid.UUID,
    body: DealProductCreate,
    auth: Auth,
    session: Session,
) -> DealProductRead:
    await _get_or_404(deal_id, session)
    product = await session.get(Product, body.product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Product not found",
        )

    price = body.price_at_sale if body.price_at_sale is not None else product.default_price
    item = DealProduct(
        deal_id=deal_id,
        product_id=product.id,
        quantity=body.quantity,
        price_at_sale=price,
    )
    session.add(item)
    await session.flush()
    await recompute_deal_amount(session, deal_id)
    await session.commit()
    await session.refresh(item)
    return _line_item_read(item, product)


@router.patch("/deal-products/{item_id}", response_model=DealProductRead)
async def update_line_item(
    item_id: uuid.UUID,
    body: DealProductUpdate,
    auth: Auth,
    session: Session,
) -> DealProductRead:
    item = await _get_item_or_404(item_id, session)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(item, field, value)
    item.touch()
    session.add(item)
    await session.flush()
    await recompute_deal_amount(session, item.deal_id)
    await session.commit()
    await session.refresh(item)
    product = await session.get(Product, item.product_id)
    return _line_item_read(item, product)


@router.delete("/deal-products/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_line_item(item_id: uuid.UUID, auth: Auth, session: Session) -> None:
    item = await _get_item_or_404(item_id, session)
    deal_id = item.deal_id
    await session.delete(item)
    await session.flush()
    await recompute_deal_amount(session, deal_id)
    await session.commit()


# ── Internal helpers ──────────────────────────────────────────

def _line_item_read(item: DealProduct, product: Product | None) -> DealProductRead:
    return DealProductRead(
        id=item.id,
        deal_id=item.deal_id,
        product_id=item.product_id,
        product_name=product.name if product else None,
        quantity=item.quantity,
        price_at_sale=item.price_at_sale,
        line_total=float(line_total(item)),
    )


async def _get_or_404(deal_id: uuid.UUID, session) -> Deal:
    deal = await session.get(Deal, deal_id)
    if deal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deal not found")
    return deal


async def _get_item_or_404(item_id: uuid.UUID, session) -> DealProduct:
    item = await session.get(DealProduct, item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Line item not found")
    return item


async def _ensure_stage(stage_id: uuid.UUID, session) -> None:
    if await session.get(Stage, stage_id) is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Stage not found",
        )


async def _ensure_counterparty(counterparty_id: uuid.UUID | None, session) -> None:
    if counterparty_id is not None and await session.get(Counterparty, counterparty_id) is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Counterparty not found",
        )
