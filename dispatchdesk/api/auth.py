import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from dispatchdesk.schemas.auth import LoginIn, TokenOut
from dispatchdesk.models.user import User
from dispatchdesk.db.session import get_db
from dispatchdesk.core.security import create_access_token, hash_password, verify_password
from dispatchdesk.core.enums import UserRole, AuditAction
from dispatchdesk.core.audit_log import log_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _find_user(db: AsyncSession, username: str):
    res = await db.execute(select(User).where(User.username == username))
    return res.scalars().first()


@router.post("/register", response_model=TokenOut)
async def register(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    """Create a dispatcher (agent) account. Admins are seeded with create_admin.py."""
    if await _find_user(db, payload.username):
        raise HTTPException(status_code=400, detail="Username already taken")

    user = User(username=payload.username, password_hash=hash_password(payload.password), role=UserRole.AGENT)
    db.add(user)
    await db.commit()
    logger.info(f"Registered dispatcher {payload.username}")

    await log_audit(db, int(user.id), AuditAction.LOGIN, {"username": payload.username}, commit=True)

    return TokenOut(access_token=create_access_token(str(user.id), user.role), role=user.role)


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    user = await _find_user(db, form_data.username)
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    await log_audit(db, int(user.id), AuditAction.LOGIN, {"username": form_data.username}, commit=True)

    return TokenOut(access_token=create_access_token(str(user.id), user.role), role=user.role)
