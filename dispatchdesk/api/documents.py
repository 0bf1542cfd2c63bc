from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response
from typing import Optional

from dispatchdesk.db.session import get_db
from dispatchdesk.schemas.document import RateConfirmationIn
from dispatchdesk.core.security import get_current_user
from dispatchdesk.core.exceptions import NotFoundError
from dispatchdesk.core.auth_utils import not_found_response
from dispatchdesk.services.fleet import get_load
from dispatchdesk.services.rate_confirmation import merge_load, order_number, render_rate_confirmation
from dispatchdesk.utils.timeutils import utcnow

router = APIRouter(prefix="/documents", tags=["documents"])


def _pdf_response(data: RateConfirmationIn) -> Response:
    issued_at = utcnow()
    content = render_rate_confirmation(data, issued_at)
    filename = f"{order_number(data.load_id, issued_at)}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/rate-confirmation")
async def rate_confirmation(
    payload: RateConfirmationIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Render a rate confirmation. Blank fields are filled from the load when loadId is given."""
    load = None
    if payload.load_id is not None:
        try:
            load = await get_load(db, payload.load_id)
        except NotFoundError as e:
            raise not_found_response(e)
    return _pdf_response(merge_load(payload, load))


@router.get("/rate-confirmation/{load_id}")
async def load_rate_confirmation(
    load_id: int,
    carrier_name: str = Query("", alias="carrierName"),
    carrier_mc: Optional[str] = Query(None, alias="carrierMc"),
    carrier_dot: Optional[str] = Query(None, alias="carrierDot"),
    driver_contact: Optional[str] = Query(None, alias="driverContact"),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    try:
        load = await get_load(db, load_id)
    except NotFoundError as e:
        raise not_found_response(e)
    data = RateConfirmationIn(
        load_id=load_id,
        carrier_name=carrier_name,
        carrier_mc=carrier_mc,
        carrier_dot=carrier_dot,
        driver_contact=driver_contact,
    )
    return _pdf_response(merge_load(data, load))
