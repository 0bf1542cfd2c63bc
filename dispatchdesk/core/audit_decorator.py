from functools import wraps
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from dispatchdesk.core.audit_log import log_audit
from dispatchdesk.core.enums import AuditAction

PAYLOAD_KWARGS = ["payload", "lead", "data", "body"]
TARGET_KWARGS = ["lead_id", "opportunity_id", "load_id", "trip_id"]


def audit_log(action: AuditAction) -> Callable:
    """Write one audit row after the wrapped route succeeds.

    The route must take ``db`` and ``current_user`` as keyword arguments,
    which FastAPI always does for dependencies.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)

            db: AsyncSession = kwargs.get("db")
            current_user = kwargs.get("current_user")

            if not db or not current_user:
                return result

            payload = next((kwargs[k] for k in PAYLOAD_KWARGS if k in kwargs), None)
            if payload is None:
                payload = {k: v for k, v in kwargs.items() if isinstance(v, (int, str))}
            target_id = next((kwargs[k] for k in TARGET_KWARGS if k in kwargs), None)

            await log_audit(db, int(current_user.id), action, payload, target_id=target_id, commit=True)

            return result

        return wrapper
    return decorator
