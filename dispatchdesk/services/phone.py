"""Phone normalization and best-effort phone-to-lead resolution.

Matching is a substring match of the last ten digits against the digits-only
copy of every stored lead phone. It tolerates country codes and punctuation on
either side, at the cost of possible cross-matches when two leads share a
ten-digit suffix. Ambiguous matches resolve to the oldest lead and are logged.
"""
import logging
import re
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatchdesk.models.lead import Lead

logger = logging.getLogger(__name__)

SUFFIX_LENGTH = 10
MIN_RESOLVABLE_DIGITS = 5

_NON_DIGITS = re.compile(r"\D")


def digits_only(raw) -> str:
    if raw is None:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def normalize_phone(raw) -> Optional[str]:
    digits = digits_only(raw)[-SUFFIX_LENGTH:]
    if len(digits) < MIN_RESOLVABLE_DIGITS:
        return None
    return digits


async def resolve_lead(db: AsyncSession, raw) -> Optional[Lead]:
    digits = normalize_phone(raw)
    if digits is None:
        return None

    res = await db.execute(
        select(Lead)
        .where(Lead.phone_digits.contains(digits, autoescape=True))
        .order_by(Lead.id)
        .limit(2)
    )
    matches = res.scalars().all()
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            f"Phone {digits} matches more than one lead; using lead {matches[0].id}"
        )
    return matches[0]


async def resolve_lead_id(db: AsyncSession, raw) -> Optional[int]:
    lead = await resolve_lead(db, raw)
    return lead.id if lead else None


def build_dial_uri(raw) -> Optional[str]:
    """tel: URI for the OS or desk phone handler."""
    digits = digits_only(raw)
    if not digits:
        return None
    if len(digits) == 10:
        return f"tel:+1{digits}"
    return f"tel:+{digits}"
