from typing import Optional
from pydantic import BaseModel
from dispatchdesk.core.enums import UserRole


class LoginIn(BaseModel):
    username: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Optional[UserRole] = None
