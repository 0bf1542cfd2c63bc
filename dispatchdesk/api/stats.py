from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchdesk.db.session import get_db
from dispatchdesk.schemas.stats import DashboardStats
from dispatchdesk.core.security import get_current_user
from dispatchdesk.services.stats import dashboard_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await dashboard_stats(db)
