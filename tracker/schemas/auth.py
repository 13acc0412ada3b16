from typing import Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    tokenExp: int
    userID: Optional[str] = None
    adminID: Optional[str] = None
    role: Optional[str] = None
