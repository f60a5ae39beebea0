"""Product catalogue CRUD."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.models.base import apply_update
from crm.models.deal import DealProduct
from crm.models.product import Product, ProductCreate, ProductRead, ProductUpdate

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(body: ProductCreate, auth: Auth, session: Session) -> ProductRead:
    product = Product(**body.model_dump())
    session.add(product)
    await session.commit()
    await session.refresh(product)
    return ProductRead.model_validate(product)


@router.get("", response_model=list[ProductRead])
async def list_products(auth: Auth, session: Session) -> list[ProductRead]:
    result = await session.execute(
        select(Product).order_by(Product.updated_at.desc())  # type: ignore[union-attr]
    )
    return [ProductRead.model_validate(p) for p in result.scalars().all()]


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(product_id: uuid.UUID, auth: Auth, session: Session) -> ProductRead:
    product = await _get_or_404(product_id, session)
    return ProductRead.model_validate(product)


@router.patch("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: uuid.UUID,
    body: ProductUpdate,
    auth: Auth,
    session: Session,
) -> ProductRead:
    product = await _get_or_404(product_id, session)
    apply_update(product, body.model_dump(exclude_unset=True), nullable=("sku",))
    product.touch()
    session.add(product)
    await session.commit()
    await session.refresh(product)
    return ProductRead.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: uuid.UUID, auth: Auth, session: Session) -> None:
    product = await _get_or_404(product_id, session)
    result = await session.execute(
        select(func.count()).select_from(DealProduct).where(DealProduct.product_id == product.id)
    )
    if result.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product is used on deals",
        )
    await session.delete(product)
    await session.commit()


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(product_id: uuid.UUID, session) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product
