from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthStatus(BaseModel):
    ok: bool = True


class AdminIdentity(BaseModel):
    user: str
    role: str = "admin"
