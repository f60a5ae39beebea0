"""Pipelines and their stages."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.models.base import apply_update
from crm.models.deal import Deal
from crm.models.pipeline import (
    Pipeline,
    PipelineCreate,
    PipelineRead,
    Stage,
    StageCreate,
    StageOrder,
    StageRead,
    StageUpdate,
)

router = APIRouter(prefix="/pipelines", tags=["pipelines"])

DEFAULT_STAGES = (
    ("New", "#3b82f6"),
    ("Won", "#10b981"),
)


async def _to_read(pipeline: Pipeline, session) -> PipelineRead:
    stmt = (
        select(Stage)
        .where(Stage.pipeline_id == pipeline.id)
        .order_by(Stage.order_index.asc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    return PipelineRead(
        id=pipeline.id,
        name=pipeline.name,
        stages=[StageRead.model_validate(s) for s in result.scalars().all()],
        created_at=pipeline.created_at,
    )


@router.get("", response_model=list[PipelineRead])
async def list_pipelines(auth: Auth, session: Session) -> list[PipelineRead]:
    result = await session.execute(
        select(Pipeline).order_by(Pipeline.created_at.asc())  # type: ignore[union-attr]
    )
    return [await _to_read(p, session) for p in result.scalars().all()]


@router.post("", response_model=PipelineRead, status_code=status.HTTP_201_CREATED)
async def create_pipeline(body: PipelineCreate, auth: Auth, session: Session) -> PipelineRead:
    pipeline = Pipeline(name=body.name)
    session.add(pipeline)
    await session.flush()  # populate pipeline.id

    for index, (name, color) in enumerate(DEFAULT_STAGES):
        session.add(Stage(pipeline_id=pipeline.id, name=name, color=color, order_index=index))
    await session.commit()
    await session.refresh(pipeline)
    return await _to_read(pipeline, session)


@router.patch("/{pipeline_id}", response_model=PipelineRead)
async def rename_pipeline(
    pipeline_id: uuid.UUID,
    body: PipelineCreate,
    auth: Auth,
    session: Session,
) -> PipelineRead:
    pipeline = await _get_or_404(pipeline_id, session)
    pipeline.name = body.name
    pipeline.touch()
    session.add(pipeline)
    await session.commit()
    await session.refresh(pipeline)
    return await _to_read(pipeline, session)


@router.delete("/{pipeline_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pipeline(pipeline_id: uuid.UUID, auth: Auth, session: Session) -> None:
    pipeline = await _get_or_404(pipeline_id, session)
    result = await session.execute(select(Stage).where(Stage.pipeline_id == pipeline.id))
    stages = list(result.scalars().all())

    await _ensure_no_deals([s.id for s in stages], session)
    for stage in stages:
        await session.delete(stage)
    await session.delete(pipeline)
    await session.commit()


# ── Stages ────────────────────────────────────────────────────

@router.post(
    "/{pipeline_id}/stages",
    response_model=StageRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_stage(
    pipeline_id: uuid.UUID,
    body: StageCreate,
    auth: Auth,
    session: Session,
) -> StageRead:
    await _get_or_404(pipeline_id, session)
    result = await session.execute(
        select(func.max(Stage.order_index)).where(Stage.pipeline_id == pipeline_id)
    )
    last_index = result.scalar_one_or_none()

    stage = Stage(
        pipeline_id=pipeline_id,
        name=body.name,
        order_index=(last_index if last_index is not None else -1) + 1,
    )
    session.add(stage)
    await session.commit()
    await session.refresh(stage)
    return StageRead.model_validate(stage)


@router.put("/{pipeline_id}/stages/order", response_model=PipelineRead)
async def reorder_stages(
    pipeline_id: uuid.UUID,
    body: list[StageOrder],
    auth: Auth,
    session: Session,
) -> PipelineRead:
    """Apply a new ordering to several stages in one transaction."""
    pipeline = await _get_or_404(pipeline_id, session)
    for item in body:
        stage = await session.get(Stage, item.id)
        if stage is None or stage.pipeline_id != pipeline_id:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail=f"Stage {item.id} does not belong to this pipeline",
            )
        stage.order_index = item.order_index
        stage.touch()
        session.add(stage)
    await session.commit()
    return await _to_read(pipeline, session)


@router.patch("/stages/{stage_id}", response_model=StageRead)
async def update_stage(
    stage_id: uuid.UUID,
    body: StageUpdate,
    auth: Auth,
    session: Session,
) -> StageRead:
    stage = await _get_stage_or_404(stage_id, session)
    apply_update(stage, body.model_dump(exclude_unset=True))
    stage.touch()
    session.add(stage)
    await session.commit()
    await session.refresh(stage)
    return StageRead.model_validate(stage)


@router.delete("/stages/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_stage(stage_id: uuid.UUID, auth: Auth, session: Session) -> None:
    stage = await _get_stage_or_404(stage_id, session)
    await _ensure_no_deals([stage.id], session)
    await session.delete(stage)
    await session.commit()


# ── Internal helpers ──────────────────────────────────────────

async def _get_or_404(pipeline_id: uuid.UUID, session) -> Pipeline:
    pipeline = await session.get(Pipeline, pipeline_id)
    if pipeline is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pipeline not found")
    return pipeline


async def _get_stage_or_404(stage_id: uuid.UUID, session) -> Stage:
    stage = await session.get(Stage, stage_id)
    if stage is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stage not found")
    return stage


async def _ensure_no_deals(stage_ids: list[uuid.UUID], session) -> None:
    if not stage_ids:
        return
    result = await session.execute(
        select(func.count()).select_from(Deal).where(Deal.stage_id.in_(stage_ids))  # type: ignore[attr-defined]
    )
    if result.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Move or delete the deals in this stage first",
        )
