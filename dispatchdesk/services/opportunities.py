import logging
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatchdesk.core.enums import SalesStage, CLOSED_STAGES
from dispatchdesk.core.exceptions import OpportunityNotFoundError
from dispatchdesk.models.opportunity import Opportunity
from dispatchdesk.schemas.opportunity import OpportunityCreate, OpportunityUpdate, PipelineSummary
from dispatchdesk.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "Agent"
DEFAULT_PROBABILITY = 20


async def list_opportunities(db: AsyncSession) -> List[Opportunity]:
    res = await db.execute(select(Opportunity).order_by(Opportunity.created_at, Opportunity.id))
    return res.scalars().all()


async def get_opportunity(db: AsyncSession, opportunity_id: int) -> Opportunity:
    res = await db.execute(select(Opportunity).where(Opportunity.id == opportunity_id))
    opp = res.scalars().first()
    if opp is None:
        raise OpportunityNotFoundError(opportunity_id)
    return opp


async def create_opportunity(db: AsyncSession, payload: OpportunityCreate) -> Opportunity:
    opp = Opportunity(
        **payload.model_dump(),
        stage=SalesStage.PROSPECTING,
        owner=DEFAULT_OWNER,
        probability=DEFAULT_PROBABILITY,
    )
    db.add(opp)
    await db.commit()
    return opp


async def update_stage(db: AsyncSession, opportunity_id: int, stage: SalesStage) -> Opportunity:
    opp = await get_opportunity(db, opportunity_id)
    if opp.stage != stage:
        logger.info(f"Opportunity {opportunity_id} moved {opp.stage} -> {stage}")
    opp.stage = stage
    await db.commit()
    return opp


async def update_opportunity(db: AsyncSession, opportunity_id: int, payload: OpportunityUpdate) -> Opportunity:
    opp = await get_opportunity(db, opportunity_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(opp, field, value)
    await db.commit()
    return opp


async def delete_opportunity(db: AsyncSession, opportunity_id: int) -> None:
    opp = await get_opportunity(db, opportunity_id)
    await db.delete(opp)
    await db.commit()


def summarize_pipeline(opportunities) -> PipelineSummary:
    pipeline_value = 0.0
    active = won = lost = 0
    for opp in opportunities:
        if opp.stage == SalesStage.WON:
            won += 1
        elif opp.stage == SalesStage.LOST:
            lost += 1
        if opp.stage not in CLOSED_STAGES:
            pipeline_value += opp.value or 0.0
            active += 1

    closed = won + lost
    win_rate = round_half_up(won / closed * 100) if closed else 0
    return PipelineSummary(
        pipeline_value=pipeline_value,
        win_rate=win_rate,
        active_deals=active,
        won_count=won,
        lost_count=lost,
    )


async def pipeline_summary(db: AsyncSession) -> PipelineSummary:
    return summarize_pipeline(await list_opportunities(db))
