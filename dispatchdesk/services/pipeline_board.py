"""Optimistic stage moves for the pipeline board.

A move is applied to the local copy first, then persisted. If persisting
fails, the local copy is replaced by a fresh read so the board never keeps a
move the store rejected.
"""
import logging
from typing import Awaitable, Callable, List, Optional
from dispatchdesk.core.enums import SalesStage
from dispatchdesk.schemas.opportunity import OpportunityOut, PipelineSummary
from dispatchdesk.services.opportunities import summarize_pipeline

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[List[OpportunityOut]]]
StagePersister = Callable[[int, SalesStage], Awaitable[object]]


class PipelineBoard:

    def __init__(self, load: Loader, persist_stage: StagePersister):
        self._load = load
        self._persist_stage = persist_stage
        self.opportunities: List[OpportunityOut] = []

    async def reload(self) -> List[OpportunityOut]:
        self.opportunities = list(await self._load())
        return self.opportunities

    def column(self, stage: SalesStage) -> List[OpportunityOut]:
        return [o for o in self.opportunities if o.stage == stage]

    def summary(self) -> PipelineSummary:
        return summarize_pipeline(self.opportunities)

    def _find(self, opportunity_id: int) -> Optional[OpportunityOut]:
        return next((o for o in self.opportunities if o.id == opportunity_id), None)

    async def move(self, opportunity_id: int, stage: SalesStage) -> None:
        current = self._find(opportunity_id)
        if current is None:
            raise KeyError(opportunity_id)

        self.opportunities = [
            o.model_copy(update={"stage": stage}) if o.id == opportunity_id else o
            for o in self.opportunities
        ]
        try:
            await self._persist_stage(opportunity_id, stage)
        except Exception:
            logger.warning(f"Stage move for opportunity {opportunity_id} rejected; reloading board", exc_info=True)
            await self.reload()
            raise
